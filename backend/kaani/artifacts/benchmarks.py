# /kaani/artifacts/benchmarks.py

import math
from typing import Optional, TypedDict

# Baseline crop budget benchmarks (PHP per hectare) and the fixed input
# categories a benchmark total is split across.


class CropBenchmark(TypedDict):
    currency: str
    cost_per_ha_min: int
    cost_per_ha_max: int
    typical_cycle_days: int


_PALAY: CropBenchmark = {"currency": "PHP", "cost_per_ha_min": 35000, "cost_per_ha_max": 65000, "typical_cycle_days": 110}
_MAIS: CropBenchmark = {"currency": "PHP", "cost_per_ha_min": 25000, "cost_per_ha_max": 55000, "typical_cycle_days": 95}

CROP_BUDGET_BENCHMARKS = {
    "palay": _PALAY,
    "rice": _PALAY,
    "mais": _MAIS,
    "corn": _MAIS,
}

# Substring -> benchmark key, checked in order
CROP_ALIASES = [
    ("palay", "palay"),
    ("rice", "rice"),
    ("mais", "mais"),
    ("maize", "corn"),
    ("corn", "corn"),
]

INPUT_CATEGORIES = [
    ("seeds", "Seeds/Seedlings"),
    ("fertilizer", "Fertilizer"),
    ("pesticide", "Pesticide/Herbicide"),
    ("labor", "Labor"),
    ("irrigation", "Irrigation/Water"),
    ("land_prep", "Land Preparation"),
    ("harvest", "Harvest/Post-harvest"),
    ("logistics", "Logistics/Transport"),
    ("misc", "Misc/Contingency"),
]

# Percent of total cost per category; sums to 100
CATEGORY_WEIGHTS = {
    "seeds": 12,
    "fertilizer": 25,
    "pesticide": 10,
    "labor": 25,
    "irrigation": 8,
    "land_prep": 8,
    "harvest": 7,
    "logistics": 3,
    "misc": 2,
}


def normalize_crop_name(crop: Optional[str]) -> Optional[str]:
    """Maps common crop spellings to a benchmark key; unknown crops pass through lowercased."""
    if not crop:
        return None
    normalized = str(crop).strip().lower()
    for alias, key in CROP_ALIASES:
        if alias in normalized:
            return key
    return normalized


def get_crop_benchmark(crop: Optional[str]) -> Optional[CropBenchmark]:
    key = normalize_crop_name(crop)
    if not key:
        return None
    return CROP_BUDGET_BENCHMARKS.get(key)


def round_to_increment(value: float, increment: float) -> float:
    """Half-up rounding to the nearest multiple of `increment`."""
    return math.floor(value / increment + 0.5) * increment


def format_php(amount: float) -> str:
    """Thousands-separated amount without trailing zeros, e.g. 150,000 or 1,234.5"""
    if float(amount).is_integer():
        return f"{int(amount):,}"
    return f"{amount:,.2f}".rstrip("0").rstrip(".")
