"""Main CLI entry point for trigger stream synchronization."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from trigsync.config import SyncConfig
from trigsync.errors import SynchronizationError

app = typer.Typer(
    name="trigsync",
    help="trigsync - Keep two trigger streams pairwise time-aligned",
    add_completion=False,
)
console = Console()


def _build_config(
    min_stats: Optional[int],
    max_stats: Optional[int],
    threshold_sigma: Optional[float],
    confirmation_window: Optional[int],
    override_ratio: Optional[float],
    override_scale: Optional[float],
) -> SyncConfig:
    """Environment settings, overridden by any option given on the command line."""
    config = SyncConfig.from_env()

    options = {
        "min_stats": min_stats,
        "max_stats": max_stats,
        "threshold_sigma": threshold_sigma,
        "confirmation_window": confirmation_window,
        "override_ratio": override_ratio,
        "override_scale": override_scale,
    }
    for name, value in options.items():
        if value is not None:
            setattr(config, name, value)

    return config.validate()


MIN_STATS_OPTION = typer.Option(None, "--min-stats", help="Samples required before the scale is trusted")
MAX_STATS_OPTION = typer.Option(None, "--max-stats", help="Cap on calibration samples")
SIGMA_OPTION = typer.Option(None, "--threshold-sigma", "-s", help="Desynchronization threshold in standard deviations")
WINDOW_OPTION = typer.Option(None, "--window", "-w", help="Consecutive passing pairs needed to keep a row")
RATIO_OPTION = typer.Option(None, "--ratio", help="Use this clock ratio instead of estimating it")
SCALE_OPTION = typer.Option(None, "--scale", help="Use this timing scale instead of estimating it")
COLUMN_OPTION = typer.Option(None, "--column", "-c", help="Timestamp column for CSV inputs")


@app.command()
def calibrate(
    input1: Path = typer.Argument(..., help="Device 1 timestamps", exists=True, dir_okay=False),
    input2: Path = typer.Argument(..., help="Device 2 timestamps", exists=True, dir_okay=False),
    column: Optional[str] = COLUMN_OPTION,
    min_stats: Optional[int] = MIN_STATS_OPTION,
    max_stats: Optional[int] = MAX_STATS_OPTION,
    threshold_sigma: Optional[float] = SIGMA_OPTION,
    override_ratio: Optional[float] = RATIO_OPTION,
    override_scale: Optional[float] = SCALE_OPTION,
):
    """
    Estimate the clock ratio and timing scale of two devices.
    """
    from trigsync.diagnostics.metrics import HistogramSink
    from trigsync.engine import SynchronizationEngine
    from trigsync.ingestion.sources import load_timestamps

    try:
        config = _build_config(
            min_stats, max_stats, threshold_sigma, None, override_ratio, override_scale,
        )
        metrics = HistogramSink()
        engine = SynchronizationEngine(config, metrics=metrics)
        calibration = engine.calibrate(
            load_timestamps(input1, column),
            load_timestamps(input2, column),
        )
    except SynchronizationError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    _display_calibration(calibration, config)

    spacing_hist, diff_hist = metrics.histograms()
    console.print(
        f"\n[dim]{spacing_hist.entries} spacings, {diff_hist.entries} differences "
        f"histogrammed over [0, {spacing_hist.high:g})[/dim]"
    )


@app.command()
def sync(
    input1: Path = typer.Argument(..., help="Device 1 timestamps", exists=True, dir_okay=False),
    input2: Path = typer.Argument(..., help="Device 2 timestamps", exists=True, dir_okay=False),
    out1: Path = typer.Option(..., "--out1", help="Output for kept device 1 timestamps"),
    out2: Path = typer.Option(..., "--out2", help="Output for kept device 2 timestamps"),
    report: Optional[Path] = typer.Option(None, "--report", "-r", help="Write a JSON report"),
    column: Optional[str] = COLUMN_OPTION,
    min_stats: Optional[int] = MIN_STATS_OPTION,
    max_stats: Optional[int] = MAX_STATS_OPTION,
    threshold_sigma: Optional[float] = SIGMA_OPTION,
    confirmation_window: Optional[int] = WINDOW_OPTION,
    override_ratio: Optional[float] = RATIO_OPTION,
    override_scale: Optional[float] = SCALE_OPTION,
):
    """
    Calibrate, align and write the kept rows of both streams.
    """
    from trigsync.engine import SynchronizationEngine
    from trigsync.ingestion.sources import FileSink, load_timestamps

    console.print(Panel.fit(
        "[bold blue]trigsync[/bold blue]\n"
        f"Synchronizing: {input1.name} <-> {input2.name}",
        border_style="blue",
    ))

    try:
        config = _build_config(
            min_stats, max_stats, threshold_sigma, confirmation_window,
            override_ratio, override_scale,
        )
        engine = SynchronizationEngine(config)
        source1 = load_timestamps(input1, column)
        source2 = load_timestamps(input2, column)

        calibration = engine.calibrate(source1, source2)
        decision = engine.align(source1, source2, calibration)

        # Outputs are only opened once there is something to replay
        with FileSink(out1) as sink1, FileSink(out2) as sink2:
            result = engine.replay(source1, source2, decision, sink1, sink2, calibration)
    except SynchronizationError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    _display_calibration(result.calibration, config)

    table = Table(show_header=True, box=None)
    table.add_column("Stream", style="cyan")
    table.add_column("Rows read")
    table.add_column("Rows kept")
    table.add_column("Rows dropped")
    table.add_row("1", str(result.rows_read), str(result.rows_written1), str(result.rows_dropped1))
    table.add_row("2", str(result.rows_read), str(result.rows_written2), str(result.rows_dropped2))
    console.print()
    console.print(table)

    if report:
        output_data = result.model_dump()
        output_data["config"] = {
            "min_stats": config.min_stats,
            "max_stats": config.max_stats,
            "threshold_sigma": config.threshold_sigma,
            "confirmation_window": config.confirmation_window,
        }
        report.write_text(json.dumps(output_data, indent=2, default=str))
        console.print(f"\n[green]Report saved to {report}[/green]")


def _display_calibration(calibration, config: SyncConfig):
    """Display the calibration summary."""
    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")

    table.add_row("Ratio", f"{calibration.ratio:.6g}" + (" (override)" if calibration.ratio_overridden else ""))
    table.add_row("Scale", f"{calibration.scale:.4g}" + (" (override)" if calibration.scale_overridden else ""))
    table.add_row("Threshold", f"{calibration.threshold(config.threshold_sigma):.2e}")
    table.add_row("False positive rate", f"{calibration.false_positive_rate(config.threshold_sigma):.2e}")
    table.add_row("Accepted samples", str(calibration.accepted_count))

    if calibration.desynchronized:
        table.add_row("Desynchronized at", f"[yellow]row {calibration.desynchronized_at}[/yellow]")
    else:
        table.add_row("Desynchronized at", "[green]-[/green]")

    console.print(table)


@app.command()
def version():
    """Show version information."""
    from trigsync import __version__

    console.print(f"trigsync v{__version__}")


if __name__ == "__main__":
    app()
