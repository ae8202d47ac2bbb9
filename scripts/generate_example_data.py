"""Generate a synthetic CAISO-style fuel-mix dataset for demonstration."""

import argparse
from pathlib import Path

import numpy as np
import pandas as pd

from evcharge_engine.core.constants import COL_INTERVAL_START, FUEL_COLUMN_PREFIX
from evcharge_engine.core.schemas import AppConfig, CarbonIntensityConfig, FlatFileSourceConfig
from evcharge_engine.io.config import dump_config
from evcharge_engine.io.formats import write_fuel_mix_parquet


def generate_fuel_mix(start: str = "2025-12-15", num_days: int = 7, seed: int = 42) -> pd.DataFrame:
    """Generate hourly fuel mix (MW) with a solar day cycle and gas following net load."""
    rng = np.random.default_rng(seed)
    num_steps = num_days * 24

    dates = pd.date_range(start, periods=num_steps, freq="1h", tz="UTC")

    # CAISO local solar noon is ~20:00 UTC
    local_hour = np.asarray((dates.hour - 8) % 24)

    solar = np.zeros(num_steps)
    daylight = (local_hour >= 7) & (local_hour <= 17)
    solar[daylight] = 12000.0 * np.sin((local_hour[daylight] - 7) * np.pi / 10) ** 2
    solar += rng.normal(0, 150, num_steps)
    # Inverters report small negative values overnight
    solar = np.where(daylight, np.maximum(solar, 0), -rng.uniform(0, 40, num_steps))

    wind = np.maximum(2500 + 1500 * np.sin(np.arange(num_steps) * np.pi / 36) + rng.normal(0, 300, num_steps), 0)
    demand = 24000 + 6000 * np.sin((local_hour - 10) * np.pi / 12) + rng.normal(0, 500, num_steps)

    nuclear = np.full(num_steps, 2200.0)
    large_hydro = np.full(num_steps, 1800.0) + rng.normal(0, 100, num_steps)
    geothermal = np.full(num_steps, 800.0)
    biomass = np.full(num_steps, 350.0)

    # Batteries discharge in the evening ramp, charge (negative) at midday
    batteries = np.where((local_hour >= 17) & (local_hour <= 21), 3000.0, 0.0)
    batteries = np.where(daylight & (local_hour >= 10) & (local_hour <= 14), -2500.0, batteries)

    clean = np.maximum(solar, 0) + wind + nuclear + large_hydro + geothermal + biomass + np.maximum(batteries, 0)
    natural_gas = np.maximum(demand - clean, 1500.0)

    df = pd.DataFrame(
        {
            "solar": solar,
            "wind": wind,
            "natural_gas": natural_gas,
            "nuclear": nuclear,
            "large_hydro": large_hydro,
            "geothermal": geothermal,
            "biomass": biomass,
            "batteries": batteries,
            "coal": np.full(num_steps, 5.0),
            "imports": rng.uniform(3000, 6000, num_steps),
        },
        index=dates,
    ).round(1)

    df.columns = [f"{FUEL_COLUMN_PREFIX}{c}" for c in df.columns]
    df.index.name = COL_INTERVAL_START
    return df


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--output-dir", default=str(Path(__file__).parent.parent / "examples"))
    parser.add_argument("--days", type=int, default=7)
    parser.add_argument("--parquet", action="store_true", help="Also write a Parquet copy")
    args = parser.parse_args()

    output_dir = Path(args.output_dir)
    data_dir = output_dir / "data"
    data_dir.mkdir(parents=True, exist_ok=True)

    print(f"Generating {args.days} days of hourly fuel mix...")
    df = generate_fuel_mix(num_days=args.days)

    csv_path = data_dir / "caiso_fuel_mix.csv"
    df.reset_index().assign(
        **{COL_INTERVAL_START: lambda d: d[COL_INTERVAL_START].dt.strftime("%Y-%m-%dT%H:%M:%SZ")}
    ).to_csv(csv_path, index=False)
    print(f"✓ Wrote {len(df)} rows to {csv_path}")

    if args.parquet:
        parquet_path = data_dir / "caiso_fuel_mix.parquet"
        write_fuel_mix_parquet(df, parquet_path)
        print(f"✓ Wrote {parquet_path}")

    config = AppConfig(
        carbon_intensity=CarbonIntensityConfig(
            sources={"CAISO": FlatFileSourceConfig(path="data/caiso_fuel_mix.csv", format="csv")}
        )
    )
    dump_config(config, output_dir / "config.yaml")
    print(f"✓ Wrote {output_dir / 'config.yaml'}")


if __name__ == "__main__":
    main()
