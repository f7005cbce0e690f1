# /kaani/artifacts/common.py

import math
import re
from typing import Any, Dict, Optional

# Flow packages name the same fact differently; each tuple lists the slot
# keys that carry it, most specific first.
CROP_KEYS = ("crop", "cropPrimary", "farmer_cropPrimary")
HECTARE_KEYS = ("hectares", "farmSize", "farmer_farmSize")
PROVINCE_KEYS = ("location_province", "province")
MUNICIPALITY_KEYS = ("location_municipality", "municipality")
BARANGAY_KEYS = ("location_barangay", "barangay")
IRRIGATION_KEYS = ("irrigationType", "irrigation", "irrigation_type")
LABOR_KEYS = ("labor", "laborCost", "labor_cost")

LEADING_NUMBER_RE = re.compile(r"\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+))")


def first_present(slots: Dict[str, Any], keys) -> Optional[Any]:
    """First truthy value among `keys`; 0, False and "" count as absent."""
    for key in keys:
        value = slots.get(key)
        if value:
            return value
    return None


def parse_hectares(value: Any) -> Optional[float]:
    """
    Numbers pass through; strings parse from their leading number
    ("3.5 ha" -> 3.5). Zero, negatives and unparseable values give None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = LEADING_NUMBER_RE.match(str(value))
        if not match:
            return None
        number = float(match.group(1))
    if math.isnan(number) or number <= 0:
        return None
    return number
