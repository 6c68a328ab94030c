"""
Command-line interface for qprof.

Profiles a single InfluxDB query: captures pprof snapshots before, during and
after repeated execution and bundles them into ``profiles.tar.gz``.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from qp_common.api import QPError, configure_logging, format_duration
from qp_runner.api import ProfilerConfig, SessionResult, run_profiler
from qp_ui.console import ConsolePresenter

EXAMPLE = """
Example usage: $ qprof --db mydb -t 5m "SELECT * FROM cpu WHERE tag1 = 'foo'"
"""

presenter = ConsolePresenter()

app = typer.Typer(
    help="Profile an InfluxDB query and archive pprof snapshots taken around it.",
    add_completion=False,
)


def _print_summary(result: SessionResult) -> None:
    presenter.show_table(
        "Archive entries",
        ["#", "Entry"],
        [(str(index), name) for index, name in enumerate(result.entries, start=1)],
    )
    presenter.show_success(
        f"Saved {result.archive_path} "
        f"({result.stats.executions} executions in {format_duration(result.stats.elapsed)})"
    )


@app.command()
def profile(
    query: List[str] = typer.Argument(None, help="Query to profile (quote it)."),
    host: Optional[str] = typer.Option(
        None, "--host", envvar="QPROF_HOST", help="scheme://host:port of server/cluster/load balancer. (default: http://localhost:8086)"
    ),
    user: Optional[str] = typer.Option(
        None, "--user", envvar="QPROF_USER", help="Username if using authentication."
    ),
    password: Optional[str] = typer.Option(
        None, "--pass", envvar="QPROF_PASSWORD", help="Password if using authentication."
    ),
    insecure: bool = typer.Option(
        False, "--insecure", "-k", help="Skip SSL certificate validation."
    ),
    database: Optional[str] = typer.Option(None, "--db", help="Database to query (required)."),
    repeat: Optional[int] = typer.Option(
        None, "--repeat", "-n", help="Repeat query n times (default 1 if -t not specified)."
    ),
    duration: Optional[str] = typer.Option(
        None, "--duration", "-t", help="Repeat query for this period of time, e.g. 5m (overrides -n)."
    ),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory."),
    cpu: Optional[bool] = typer.Option(
        None, "--cpu/--no-cpu", help="Include CPU profile (will take at least 30s)."
    ),
    warmup: Optional[str] = typer.Option(
        None, "--warmup", help="Delay before taking concurrent profiles (default 15s)."
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="YAML file with default settings; flags override it."
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable verbose diagnostic logging."),
) -> None:
    """Run the query while capturing CPU, heap, goroutine, block and mutex profiles."""
    configure_logging(debug=debug, force=True)

    if not query:
        presenter.show_error("Please provide query as positional argument:")
        presenter.show_info(EXAMPLE)
        raise typer.Exit(1)
    if len(query) > 1:
        presenter.show_error("Query partially parsed. Is it quoted properly?")
        presenter.show_info(EXAMPLE)
        raise typer.Exit(1)

    try:
        settings = ProfilerConfig.load(
            config,
            host=host,
            user=user,
            password=password,
            insecure_ssl=True if insecure else None,
            database=database,
            query=query[0],
            repeat=repeat,
            duration=duration,
            output_dir=out,
            include_cpu=cpu,
            warmup_seconds=warmup,
        )
        result = run_profiler(settings)
    except QPError as exc:
        presenter.show_error(f"Error: {exc}")
        raise typer.Exit(1)

    _print_summary(result)


def main() -> None:
    """Console script entrypoint (Typer app)."""
    app()


if __name__ == "__main__":
    main()
