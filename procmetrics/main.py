"""
procmetrics.main
------------
Local harness for the collector: samples the CLI's own process.

Key contract:
- `procmetrics --help` shows a Commands section.
- `procmetrics oneshot` prints one sampling pass and exits.
- `procmetrics run` prints a pass every --interval seconds.
"""

from __future__ import annotations

import platform
import sys
import time
from enum import Enum
from typing import Union

import typer

from procmetrics import __version__
from procmetrics.collector import Collector
from procmetrics.config import Settings
from procmetrics.logging import emit_event
from procmetrics.model import describe_metrics, samples_to_json
from procmetrics.samplers import UnsupportedPlatformError
from procmetrics.sink import MemorySink, PrometheusSink

# Explicit multi-command CLI
app = typer.Typer(
    add_completion=False,
    help="procmetrics: Prometheus style process metrics for the current process",
)

AnySink = Union[MemorySink, PrometheusSink]


class OutputFormat(str, Enum):
    PROMETHEUS = "prometheus"
    JSON = "json"


def _settings_or_exit() -> Settings:
    try:
        return Settings.from_env()
    except ValueError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=2)


def _build(output: OutputFormat) -> tuple[Collector, AnySink]:
    """
    Collector + sink for one CLI invocation; bad config exits 2
    """
    sink: AnySink = PrometheusSink() if output is OutputFormat.PROMETHEUS else MemorySink()
    settings = _settings_or_exit()

    try:
        collector = Collector(sink, settings=settings)
    except UnsupportedPlatformError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=2)

    collector.describe()
    return collector, sink


def _render(collector: Collector, sink: AnySink) -> str:
    if isinstance(sink, PrometheusSink):
        return sink.exposition().decode("utf-8").rstrip("\n")
    return samples_to_json(sink.samples, sampler=collector.sampler.name)


# -----------------------------
# ROOT COMMAND BEHAVIOR
# -----------------------------
@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """
    Root command behavior: print a hint when no subcommand is given
    """
    if ctx.invoked_subcommand is None:
        typer.echo("No command provided. Try: procmetrics --help")


# -----------------------------
# CLI COMMANDS
# -----------------------------
@app.command()
def version() -> None:
    """
    Print library version & runtime env
    """
    typer.echo(f"procmetrics v{__version__}")
    typer.echo(f"python={sys.version.split()[0]}")
    typer.echo(f"os={platform.system()} {platform.release()}")
    typer.echo(f"machine={platform.machine()}")
    typer.echo(f"sys_platform={sys.platform}")


@app.command("describe")
def describe() -> None:
    """
    List the metric set: name, kind, unit, help
    """
    settings = _settings_or_exit()
    for description in describe_metrics(settings.cpu_kind, settings.prefix):
        typer.echo(
            f"{description.name}\t{description.kind.value}\t{description.unit.value}\t{description.help}"
        )


@app.command("oneshot")
def oneshot(
    output: OutputFormat = typer.Option(
        OutputFormat.PROMETHEUS,
        "--format",
        help="Output format for the sampling pass.",
    ),
) -> None:
    """
    Sample once, print, exit
    """
    emit_event("cli_start", mode="oneshot", format=output.value)
    try:
        collector, sink = _build(output)
        collector.collect()
        typer.echo(_render(collector, sink))
        emit_event("cli_sample_emitted", mode="oneshot", metrics=len(sink.samples))
    finally:
        emit_event("cli_shutdown", mode="oneshot")


@app.command("run")
def run(
    interval: float = typer.Option(
        5.0,
        help="Seconds between sampling passes.",
        min=0.1,
    ),
    count: int = typer.Option(
        0,
        help="Stop after this many passes (0 = until interrupted).",
        min=0,
    ),
    output: OutputFormat = typer.Option(
        OutputFormat.PROMETHEUS,
        "--format",
        help="Output format for each sampling pass.",
    ),
) -> None:
    """
    Sample at a fixed interval until interrupted
    """
    emit_event("cli_start", mode="run", interval_s=interval, count=count, format=output.value)

    passes = 0
    try:
        collector, sink = _build(output)

        while count == 0 or passes < count:
            start = time.monotonic()

            collector.collect()
            typer.echo(_render(collector, sink))
            passes += 1
            emit_event("cli_sample_emitted", mode="run", seq=passes, metrics=len(sink.samples))

            if count and passes >= count:
                break

            elapsed = time.monotonic() - start
            time.sleep(max(0.0, interval - elapsed))

    except KeyboardInterrupt:
        # Graceful shutdown on Ctrl+C
        pass

    finally:
        emit_event("cli_shutdown", mode="run", passes=passes)


if __name__ == "__main__":
    app()
