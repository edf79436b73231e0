"""
Shared fixtures: a fake /proc tree for the Linux sampler
"""

from __future__ import annotations

from pathlib import Path

import pytest

LIMITS_TEXT = (
    "Limit                     Soft Limit           Hard Limit           Units     \n"
    "Max cpu time              unlimited            unlimited            seconds   \n"
    "Max open files            1024                 1048576              files     \n"
    "Max address space         unlimited            unlimited            bytes     \n"
)

PROC_STAT_TEXT = "cpu  10 0 20 300 0 0 0 0 0 0\nbtime 1700000000\nprocesses 42\n"

FAKE_SYSCONF = {"SC_CLK_TCK": 100, "SC_PAGE_SIZE": 4096}


def make_stat(
    *,
    comm: str = "py thon (worker)",
    utime: int = 250,
    stime: int = 50,
    threads: int = 7,
    starttime: int = 5000,
    vsize: int = 104857600,
    rss: int = 2560,
) -> str:
    # fields 3..24 of proc(5), then padding up to field 52
    rest = [
        "S", "1", "1234", "1234", "0", "-1", "4194304", "100", "0", "0", "0",
        str(utime), str(stime), "0", "0", "20", "0", str(threads), "0",
        str(starttime), str(vsize), str(rss),
    ] + ["0"] * 28
    return f"1234 ({comm}) " + " ".join(rest) + "\n"


def fake_sysconf(name: str) -> int:
    return FAKE_SYSCONF[name]


@pytest.fixture
def fake_proc(tmp_path: Path) -> Path:
    """
    tmp/self/{stat,limits,fd/0..2} + tmp/stat
    """
    proc_self = tmp_path / "self"
    fd_dir = proc_self / "fd"
    fd_dir.mkdir(parents=True)
    for fd in ("0", "1", "2"):
        (fd_dir / fd).write_text("", encoding="utf-8")

    (proc_self / "stat").write_text(make_stat(), encoding="utf-8")
    (proc_self / "limits").write_text(LIMITS_TEXT, encoding="utf-8")
    (tmp_path / "stat").write_text(PROC_STAT_TEXT, encoding="utf-8")
    return tmp_path
