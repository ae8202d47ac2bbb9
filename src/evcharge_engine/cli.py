"""Command-line interface for the EV charging planner."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from evcharge_engine import __version__

app = typer.Typer(
    help="Low-carbon EV charging window planner",
    no_args_is_help=True,
)

# Exit codes per failure class
EXIT_ERROR = 1
EXIT_INVALID_INPUT = 2
EXIT_NO_DATA = 3
EXIT_DATA_QUALITY = 4
EXIT_INFEASIBLE = 5
EXIT_INGESTION = 6

ConfigOption = typer.Option(None, "--config", "-c", envvar="EVCHARGE_CONFIG", help="YAML config file")
DataOption = typer.Option(None, "--data", "-d", help="Fuel-mix CSV/Parquet file overriding the configured source")
ZoneOption = typer.Option(None, "--zone", "-z", help="Grid zone (defaults to configured default zone)")
LogLevelOption = typer.Option(None, "--log-level", help="Logging level (overrides config)")


def _parse_utc(value: str, name: str) -> datetime:
    from evcharge_engine.core.timeutils import parse_timestamp

    ts = parse_timestamp(value)
    if ts is None:
        raise typer.BadParameter(f"Invalid timestamp: {value!r}", param_hint=name)
    return ts


def _exit_code(error: Exception) -> int:
    from evcharge_engine.core.validate import (
        DataQualityError,
        InfeasibleWindowError,
        IngestionError,
        NoDataAvailableError,
        ValidationError,
    )

    if isinstance(error, ValidationError):
        return EXIT_INVALID_INPUT
    if isinstance(error, NoDataAvailableError):
        return EXIT_NO_DATA
    if isinstance(error, DataQualityError):
        return EXIT_DATA_QUALITY
    if isinstance(error, InfeasibleWindowError):
        return EXIT_INFEASIBLE
    if isinstance(error, IngestionError):
        return EXIT_INGESTION
    return EXIT_ERROR


def _setup(config_path: Optional[str], data_path: Optional[str], zone: Optional[str], log_level: Optional[str]):
    """Load config, apply overrides and configure logging."""
    from evcharge_engine.core.schemas import FlatFileSourceConfig
    from evcharge_engine.io.config import load_config

    try:
        config = load_config(config_path)
    except FileNotFoundError as e:
        typer.secho(f"✗ {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(EXIT_ERROR)

    zone = (zone or config.carbon_intensity.default_zone).upper()

    if data_path is not None:
        fmt = "parquet" if Path(data_path).suffix.lower() in {".parquet", ".pq"} else "csv"
        config.carbon_intensity.sources[zone] = FlatFileSourceConfig(
            path=str(Path(data_path).resolve()), format=fmt
        )

    logging.basicConfig(
        level=(log_level or config.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    base_dir = Path(config_path).parent if config_path else None
    return config, zone, base_dir


@app.command()
def version():
    """Show planner version."""
    typer.echo(f"EV Charge Engine v{__version__}")


@app.command()
def validate(data_path: str):
    """Validate a fuel-mix data file.

    Args:
        data_path: Path to CSV or Parquet fuel-mix file
    """
    from evcharge_engine.core.schemas import FlatFileSourceConfig
    from evcharge_engine.core.timeutils import parse_timestamp
    from evcharge_engine.providers.fuel_mix import FlatFileFuelMixProvider

    fmt = "parquet" if Path(data_path).suffix.lower() in {".parquet", ".pq"} else "csv"
    provider = FlatFileFuelMixProvider({"FILE": FlatFileSourceConfig(path=data_path, format=fmt)})

    try:
        readings = provider.get_readings("FILE", datetime.min, datetime.max)
    except Exception as e:
        typer.secho(f"✗ Data validation failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(_exit_code(e))

    if not readings:
        typer.secho(f"✗ {data_path} contains no data rows", fg=typer.colors.RED, err=True)
        raise typer.Exit(EXIT_DATA_QUALITY)

    fuels = sorted(readings[0].power_mw)
    bad_timestamps = sum(1 for r in readings if parse_timestamp(r.timestamp) is None)

    typer.echo(f"Rows:            {len(readings)}")
    typer.echo(f"Fuel columns:    {', '.join(fuels) if fuels else '(none)'}")
    typer.echo(f"Bad timestamps:  {bad_timestamps}")
    typer.secho(f"✓ {data_path} is readable", fg=typer.colors.GREEN)


@app.command()
def intensity(
    start: str = typer.Option(..., "--start", help="Range start (UTC, inclusive)"),
    end: str = typer.Option(..., "--end", help="Range end (UTC, exclusive)"),
    zone: Optional[str] = ZoneOption,
    config_path: Optional[str] = ConfigOption,
    data_path: Optional[str] = DataOption,
    log_level: Optional[str] = LogLevelOption,
):
    """Print the hourly carbon-intensity series for a range."""
    from evcharge_engine.intensity.builder import series_to_frame
    from evcharge_engine.io.config import build_intensity_provider

    start_utc = _parse_utc(start, "--start")
    end_utc = _parse_utc(end, "--end")
    config, zone, base_dir = _setup(config_path, data_path, zone, log_level)

    provider = build_intensity_provider(config, base_dir=base_dir)
    try:
        series = provider.get_series(zone, start_utc, end_utc)
    except Exception as e:
        typer.secho(f"✗ {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(_exit_code(e))

    if series.is_empty:
        typer.secho(
            f"No carbon intensity data available for {zone} between {start_utc} and {end_utc}",
            fg=typer.colors.YELLOW,
            err=True,
        )
        raise typer.Exit(EXIT_NO_DATA)

    df = series_to_frame(series.points)
    typer.echo("\n" + df.to_string(float_format=lambda v: f"{v:.4f}"))

    typer.echo(
        f"\n{len(series.points)} points "
        f"({series.rows_in_range} rows in range, {series.skipped_rows} skipped, "
        f"{series.zero_generation_rows} zero-generation)"
    )


@app.command()
def recommend(
    start: str = typer.Option(..., "--start", help="Window start (UTC)"),
    end: str = typer.Option(..., "--end", help="Window end (UTC)"),
    kwh: float = typer.Option(..., "--kwh", help="Energy needed in kWh"),
    max_kw: float = typer.Option(..., "--max-kw", help="Maximum charging power in kW"),
    zone: Optional[str] = ZoneOption,
    config_path: Optional[str] = ConfigOption,
    data_path: Optional[str] = DataOption,
    log_level: Optional[str] = LogLevelOption,
    as_json: bool = typer.Option(False, "--json", help="Print the response contract as JSON"),
):
    """Recommend the lowest-emissions charging start time."""
    from pydantic import ValidationError as SchemaError

    from evcharge_engine.core.schemas import RecommendationRequest
    from evcharge_engine.io.config import build_intensity_provider, build_optimizer
    from evcharge_engine.runners.recommend import run_recommendation

    start_utc = _parse_utc(start, "--start")
    end_utc = _parse_utc(end, "--end")
    config, zone, base_dir = _setup(config_path, data_path, zone, log_level)

    try:
        request = RecommendationRequest(
            zone=zone,
            window_start_utc=start_utc,
            window_end_utc=end_utc,
            kwh_needed=kwh,
            max_charging_kw=max_kw,
        )
    except SchemaError as e:
        for err in e.errors():
            typer.secho(f"✗ {err['msg']}", fg=typer.colors.RED, err=True)
        raise typer.Exit(EXIT_INVALID_INPUT)

    provider = build_intensity_provider(config, base_dir=base_dir)
    try:
        response = run_recommendation(
            request,
            provider,
            supported_zones=provider.supported_zones,
            optimizer=build_optimizer(config),
        )
    except Exception as e:
        typer.secho(f"✗ {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(_exit_code(e))

    if as_json:
        typer.echo(json.dumps(response.to_wire(), indent=2))
        return

    typer.echo("\n" + "=" * 60)
    typer.echo("CHARGING RECOMMENDATION")
    typer.echo("=" * 60)
    typer.echo(f"\nZone:             {response.zone}")
    typer.echo(f"Start (UTC):      {response.recommended_start_utc.isoformat()}")
    typer.echo(f"End (UTC):        {response.recommended_end_utc.isoformat()}")
    typer.echo(f"Emissions:        {response.estimated_emissions_kg:.3f} kg CO2")
    typer.echo(f"\n{response.assumptions.explanation}")
    typer.echo("\n" + "=" * 60 + "\n")

    typer.secho("✓ Recommendation complete", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
