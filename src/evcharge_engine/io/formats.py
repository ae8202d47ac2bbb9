"""Data format helpers for fuel-mix flat files (CSV and Parquet)."""

from datetime import datetime
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from evcharge_engine.core.constants import COL_INTERVAL_START, FUEL_COLUMN_PREFIX, REQUIRED_INPUT_COLUMNS
from evcharge_engine.core.schemas import FuelReading


def check_fuel_mix_header(df: pd.DataFrame) -> None:
    """Reject a fuel-mix table without a timestamp column.

    The error names the absent column(s) and the headers that were found.
    """
    absent = [c for c in REQUIRED_INPUT_COLUMNS if c not in df.columns]
    if absent:
        found = ", ".join(df.columns) or "(none)"
        raise ValueError(f"Fuel-mix table lacks column(s) {', '.join(absent)}; found: {found}")


def normalize_headers(df: pd.DataFrame) -> pd.DataFrame:
    """Lower-case and strip column headers."""
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]
    return df


def fuel_columns(df: pd.DataFrame) -> list[str]:
    """Columns carrying per-fuel power readings."""
    return [c for c in df.columns if c.startswith(FUEL_COLUMN_PREFIX)]


def read_fuel_mix_csv(path: str | Path) -> pd.DataFrame:
    """Read a fuel-mix CSV keeping every cell as raw text.

    Args:
        path: Path to CSV file

    Returns:
        DataFrame with normalized headers and string cells
    """
    df = pd.read_csv(path, dtype=str, keep_default_na=False, skipinitialspace=True)
    df = normalize_headers(df)
    check_fuel_mix_header(df)
    return df


def read_fuel_mix_parquet(path: str | Path) -> pd.DataFrame:
    """Read a fuel-mix Parquet file.

    Args:
        path: Path to Parquet file

    Returns:
        DataFrame with normalized headers
    """
    df = pd.read_parquet(path)
    df = normalize_headers(df)
    check_fuel_mix_header(df)
    return df


def write_fuel_mix_parquet(df: pd.DataFrame, path: str | Path) -> None:
    """Write a fuel-mix table to Parquet.

    Args:
        df: DataFrame with an interval_start_utc column or DatetimeIndex
        path: Output path
    """
    df_out = df.copy()
    if COL_INTERVAL_START not in df_out.columns:
        df_out.index.name = COL_INTERVAL_START
        df_out = df_out.reset_index()

    table = pa.Table.from_pandas(df_out, preserve_index=False)
    pq.write_table(table, str(path), compression="snappy")


def _raw_cell(value: Any) -> Any:
    """Convert a cell to a plain Python value, mapping NA to None."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if pd.isna(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, np.generic):
        return value.item()
    return value


def frame_to_readings(df: pd.DataFrame) -> list[FuelReading]:
    """Convert a fuel-mix table into raw FuelReadings.

    Args:
        df: Table with normalized headers (interval_start_utc, fuel_mix.*)

    Returns:
        One FuelReading per row, fuel names stripped of their column prefix
    """
    fuels = {col: col[len(FUEL_COLUMN_PREFIX):] for col in fuel_columns(df)}

    readings = []
    for i, record in enumerate(df.to_dict(orient="records")):
        timestamp = _raw_cell(record.get(COL_INTERVAL_START))
        if not isinstance(timestamp, (datetime, str)):
            timestamp = None if timestamp is None else str(timestamp)

        power_mw = {}
        for col, fuel in fuels.items():
            value = _raw_cell(record.get(col))
            if not isinstance(value, (int, float, str)) and value is not None:
                value = str(value)
            power_mw[fuel] = value

        readings.append(FuelReading(timestamp=timestamp, power_mw=power_mw, row_number=i + 1))

    return readings
