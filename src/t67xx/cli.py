"""Command line interface for the t67xx package."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional

import typer

from .accuracy import WARMUP_SECONDS, AccuracyModel, BootTimeError, ProcStatBootTime
from .bus import open_device
from .config import SensorConfig, load_config
from .driver import T67XX, AddressError, validate_address
from .monitor import Reading, SensorMonitor

logger = logging.getLogger(__name__)

app = typer.Typer(
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
    help="Telaire T67XX CO₂ sensor utilities.",
)


@dataclass
class CliState:
    config: SensorConfig


def _parse_address(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value, 0)
    except ValueError as exc:
        raise typer.BadParameter(f"'{value}' is not an integer address") from exc


@app.callback()
def main(
    ctx: typer.Context,
    bus: Optional[int] = typer.Option(None, "--bus", "-b", help="I2C bus number (/dev/i2c-N)."),
    address: Optional[str] = typer.Option(None, "--address", "-a", help="Sensor address, e.g. 0x15."),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", exists=True, readable=True, help="JSON configuration file."
    ),
    override: Optional[List[str]] = typer.Option(
        None, "--set", help="Override config keys, e.g. --set monitor.interval_sec=5"
    ),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level (DEBUG, INFO, ...)."),
) -> None:
    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise typer.BadParameter(f"Unknown log level '{log_level}'", param_hint="--log-level")
    logging.basicConfig(
        level=level, format="%(asctime)s %(name)s %(levelname)s %(message)s", force=True
    )

    overrides = list(override or [])
    if bus is not None:
        overrides.append(f"bus={bus}")
    parsed_address = _parse_address(address)
    if parsed_address is not None:
        overrides.append(f"address={parsed_address}")
    try:
        cfg = load_config(config_path, overrides or None)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    ctx.obj = CliState(config=cfg)


@contextmanager
def _driver(ctx: typer.Context) -> Iterator[T67XX]:
    cfg: SensorConfig = ctx.obj.config
    try:
        device = open_device(cfg.bus_settings)
    except OSError as exc:
        typer.echo(f"Couldn't open the T67XX sensor at 0x{cfg.address:02x}: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    try:
        yield T67XX(device)
    except OSError as exc:
        typer.echo(f"Sensor communication failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    finally:
        device.close()


def _echo_reading(reading: Reading) -> None:
    suffix = "" if reading.in_bounds else " (out of bounds)"
    typer.echo(f"{reading.ppm} ppm{suffix}")


def _accuracy(ctx: typer.Context) -> AccuracyModel:
    cfg: SensorConfig = ctx.obj.config
    return AccuracyModel(
        ProcStatBootTime(cfg.boot_time_path),
        assume_warm_when_unknown=cfg.assume_warm_when_unknown,
    )


@app.command()
def ppm(ctx: typer.Context) -> None:
    """Print the current CO₂ concentration."""
    with _driver(ctx) as sensor:
        typer.echo(f"{sensor.gas_ppm()} ppm")


@app.command()
def firmware(ctx: typer.Context) -> None:
    """Query the firmware version."""
    with _driver(ctx) as sensor:
        typer.echo(f"Firmware version: {sensor.firmware_version()}")


@app.command()
def status(ctx: typer.Context) -> None:
    """Print the status bits set on the sensor."""
    with _driver(ctx) as sensor:
        result = sensor.status()
    typer.echo(f"Status: 0x{int(result.mask):04X}")
    typer.echo(f"Status bits set: {result}")


@app.command()
def reset(ctx: typer.Context) -> None:
    """Reset the sensor."""
    with _driver(ctx) as sensor:
        sensor.reset()
    typer.echo("Reset sent; wait for the sensor to restart before reading")


@app.command("enable-abc")
def enable_abc(ctx: typer.Context) -> None:
    """Enable Automatic Background Logic calibration."""
    with _driver(ctx) as sensor:
        sensor.enable_abc()
    typer.echo("ABC calibration enabled")


@app.command("set-address")
def set_address(
    ctx: typer.Context,
    new_address: str = typer.Argument(..., help="New sensor address (0x03-0x77)."),
) -> None:
    """Move the sensor to a new bus address and reset it."""
    address = _parse_address(new_address)
    try:
        validate_address(address)
    except AddressError as exc:
        raise typer.BadParameter(str(exc), param_hint="NEW_ADDRESS") from exc
    with _driver(ctx) as sensor:
        sensor.set_address(address)
    typer.echo(f"Sensor moved to 0x{address:02x}; use --address 0x{address:02x} from now on")


@app.command()
def accuracy(ctx: typer.Context) -> None:
    """Report whether the warm-up window since boot has passed."""
    model = _accuracy(ctx)
    try:
        remaining = model.remaining_warmup()
    except BootTimeError as exc:
        typer.echo(f"Could not determine boot time: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    if remaining > 0:
        typer.echo(f"Warming up: full accuracy in {remaining:.0f} s")
    else:
        typer.echo("Sensor is at full accuracy")


@app.command()
def wait(ctx: typer.Context) -> None:
    """Block until the sensor has been powered for the full warm-up window."""
    try:
        _accuracy(ctx).block_until_fully_accurate()
    except BootTimeError as exc:
        typer.echo(f"Could not determine boot time: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"Sensor is at full accuracy ({WARMUP_SECONDS} s after boot)")


@app.command()
def monitor(
    ctx: typer.Context,
    count: Optional[int] = typer.Option(None, "--count", "-n", min=1, help="Stop after N readings."),
) -> None:
    """Read CO₂ in a loop, skipping readings until the sensor is fully accurate."""
    cfg: SensorConfig = ctx.obj.config
    with _driver(ctx) as sensor:
        if cfg.enable_abc:
            sensor.enable_abc()
            logger.info("ABC calibration enabled")
        loop = SensorMonitor(sensor, _accuracy(ctx), cfg.monitor)
        loop.register_callback(_echo_reading)
        try:
            loop.run(max_readings=count)
        except BootTimeError as exc:
            typer.echo(f"Could not determine boot time: {exc}", err=True)
            raise typer.Exit(code=1) from exc


def run() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    run()
