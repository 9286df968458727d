"""Command line interface for the sermeas package."""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer

from .acq.config import AcquisitionConfig, load_config
from .acq.plotting import plot_series
from .acq.processing import convert_to_voltage
from .acq.runner import AcquisitionError, run_acquisition
from .acq.transport import (
    ByteTransport,
    SerialSettings,
    StreamTransport,
    TransportError,
    list_ports,
    open_transport,
)
from .reporting import dat_path, format_summary, write_csv, write_dat

logger = logging.getLogger(__name__)

app = typer.Typer(
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
    help="Acquire a batch of samples from a microcontroller and store them as volts.",
)


def open_cli_transport(cfg: AcquisitionConfig) -> ByteTransport:
    if cfg.serial.port == "-":
        return StreamTransport(sys.stdin.buffer, name="<stdin>")
    settings = SerialSettings(
        port=cfg.serial.port,
        baudrate=cfg.serial.baudrate,
        timeout=cfg.serial.read_timeout_s,
        startup_delay_ms=cfg.serial.startup_delay_ms,
    )
    return open_transport(settings)


def _echo_raw(buffer: bytes) -> None:
    for byte in buffer:
        typer.echo(f"{byte:#04x} {chr(byte)!r}")


@app.command("run")
def run_command(
    port: Optional[str] = typer.Option(
        None, "--port", "-p", help="Serial device. Use '-' to read from stdin."
    ),
    baudrate: Optional[int] = typer.Option(None, "--baud", "-b", help="Serial baudrate."),
    delay_ms: Optional[int] = typer.Option(
        None, "--delay", "-d", help="Wait this many ms after opening the port (board reset)."
    ),
    samples: Optional[int] = typer.Option(None, "--samples", "-n", help="Number of samples to read."),
    raw: bool = typer.Option(False, "--raw", "-r", help="Read binary '<lh>' frames instead of text lines."),
    echo: bool = typer.Option(False, "--echo", "-o", help="Print received data to the terminal."),
    out: Optional[str] = typer.Option(None, "--out", help="Output name; writes <name>.dat (default test.dat)."),
    out_dir: Optional[Path] = typer.Option(None, "--out-dir", help="Directory for output files."),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="JSON acquisition config.", exists=True, readable=True
    ),
    override: Optional[List[str]] = typer.Option(
        None, "--set", help="Override config keys, e.g. --set timing.line_timeout_ms=500"
    ),
    idle_timeout: Optional[float] = typer.Option(
        None, "--idle-timeout", help="Abort binary reads after this many idle seconds."
    ),
    csv_out: bool = typer.Option(False, "--csv", help="Also write <name>.csv with raw and volts."),
    plot: bool = typer.Option(False, "--plot", help="Also write <name>.png (requires matplotlib)."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Read samples, report timing and write the voltages to a .dat file."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        cfg = load_config(config_path, override or None)
        if port is not None:
            cfg.serial.port = port
        if baudrate is not None:
            cfg.serial.baudrate = baudrate
        if delay_ms is not None:
            cfg.serial.startup_delay_ms = delay_ms
        if samples is not None:
            cfg.sample_count = samples
        if raw:
            cfg.mode = "binary"
        if out is not None:
            cfg.output_name = out
        if out_dir is not None:
            cfg.output_dir = out_dir
        if idle_timeout is not None:
            cfg.timing.idle_timeout_s = idle_timeout
        cfg.validate()
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    typer.echo(f"n = {cfg.sample_count}")
    try:
        transport = open_cli_transport(cfg)
    except TransportError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    try:
        result = run_acquisition(
            transport,
            cfg.sample_count,
            cfg.mode,
            idle_timeout_s=cfg.timing.idle_timeout_s,
            line_timeout_ms=cfg.timing.line_timeout_ms,
            line_max_length=cfg.timing.line_max_length,
            raw_callback=_echo_raw if echo else None,
        )
    except AcquisitionError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    except KeyboardInterrupt:
        logger.info("Stopping acquisition (Ctrl+C)")
        raise typer.Exit(code=130)
    finally:
        transport.close()

    for line in format_summary(result):
        typer.echo(line)
    if echo:
        for value in result.samples:
            typer.echo(str(value))

    series = convert_to_voltage(result)
    target = dat_path(cfg.output_name, cfg.output_dir)
    write_dat(series, target)
    typer.echo(f"Wrote {len(series)} samples to {target}")
    if csv_out:
        write_csv(result, target.with_suffix(".csv"))
    if plot:
        try:
            plot_series(series, target.with_suffix(".png"), title=target.stem)
        except RuntimeError as exc:
            typer.echo(f"[warning] plotting skipped: {exc}")


@app.command("ports")
def ports_command() -> None:
    """List serial ports visible to the host."""

    found = list_ports()
    if not found:
        typer.echo("No serial ports found")
        return
    for device, description in sorted(found.items()):
        typer.echo(f"{device}\t{description}")


def run() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    run()
