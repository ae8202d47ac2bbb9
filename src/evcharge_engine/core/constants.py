"""Canonical column names, units and emissions factors.

UNITS:
- Power readings: MW (average over the interval)
- Charging power: kW
- Energy: kWh
- Carbon intensity: kg CO2 per kWh
- Emissions: kg CO2
- Timestamps: UTC, hourly buckets keyed by their start

INTENSITY FORMULA (per hourly row):
energy_kwh[fuel] = max(power_mw[fuel], 0) * 1 h * 1000
intensity = sum(energy_kwh[fuel] * factor[fuel]) / sum(energy_kwh[fuel])

Fuels without a registered factor count toward total generation with factor 0.
"""

from types import MappingProxyType

# Flat-file columns (headers are matched case-insensitively)
COL_INTERVAL_START = "interval_start_utc"
FUEL_COLUMN_PREFIX = "fuel_mix."

REQUIRED_INPUT_COLUMNS = [COL_INTERVAL_START]

# Zones
ZONE_CAISO = "CAISO"
DEFAULT_ZONE = ZONE_CAISO

# Emissions factors (kg CO2 / kWh), CAISO fuel categories
DEFAULT_EMISSIONS_FACTORS = MappingProxyType(
    {
        "natural_gas": 0.40,
        "coal": 1.00,
        "oil": 0.80,
        "solar": 0.00,
        "wind": 0.00,
        "large_hydro": 0.00,
        "small_hydro": 0.00,
        "nuclear": 0.00,
        "geothermal": 0.00,
        "biomass": 0.00,
        "biogas": 0.00,
        "batteries": 0.00,
    }
)

# Unit conversion
KW_PER_MW = 1000.0
READING_INTERVAL_HOURS = 1.0

# Data-quality policy
MAX_ZERO_GENERATION_FRACTION = 0.5

# Absolute tolerance (kg CO2) for treating two candidate totals as tied
TIE_TOLERANCE_KG = 1e-9

# Remaining charge time (hours) below which the bucket walk stops
DURATION_RESIDUE_HOURS = 1e-12

PLANNER_EXPLANATION = (
    "Hourly planner: evaluates hourly start times and chooses the feasible window "
    "with minimum estimated emissions. Tie-break: earliest start time. "
    "Carbon intensity series assumed hourly in UTC."
)

TIE_BREAK_POLICY = "earliest start time"

EMISSIONS_FACTORS_NOTE = (
    "Average emissions factors per fuel type (kg CO2/kWh); fuels without a factor "
    "count as zero-emission generation. See DATA_NOTES.md."
)
