# /kaani/artifacts/cost_breakdown.py

from typing import Optional

from kaani.artifacts.benchmarks import (
    CATEGORY_WEIGHTS, INPUT_CATEGORIES, format_php, get_crop_benchmark, round_to_increment,
)
from kaani.models.artifacts import (
    CostBreakdownArtifact, CostBreakdownData, CostLineItem, MoneyRange,
)

COST_ROUNDING = 10


def build_cost_breakdown(crop: Optional[str], hectares: Optional[float]) -> CostBreakdownArtifact:
    """
    Scales the crop's per-hectare benchmark by farm size and splits the
    total across the fixed input categories. Without both a benchmark and
    a positive farm size every amount is zero.
    """
    benchmark = get_crop_benchmark(crop)
    total = MoneyRange(min=0, max=0)
    per_hectare = None
    assumptions = []
    confidence = "low"

    if benchmark and hectares and hectares > 0:
        per_hectare = MoneyRange(min=benchmark["cost_per_ha_min"], max=benchmark["cost_per_ha_max"])
        total = MoneyRange(
            min=round_to_increment(per_hectare.min * hectares, COST_ROUNDING),
            max=round_to_increment(per_hectare.max * hectares, COST_ROUNDING),
        )
        confidence = "high"
        assumptions.append(
            f"Using {crop} benchmark: PHP {format_php(per_hectare.min)} - {format_php(per_hectare.max)} per hectare"
        )
    else:
        if not crop:
            assumptions.append("Crop type not specified - cannot estimate costs")
        if not hectares or hectares <= 0:
            assumptions.append("Farm size not specified - cannot calculate total")
        if crop and not benchmark:
            assumptions.append(f"No benchmark data available for {crop}")
        elif benchmark and not hectares:
            confidence = "medium"

    line_items = [
        CostLineItem(
            category=key,
            label=label,
            min=round_to_increment(total.min * CATEGORY_WEIGHTS[key] / 100, COST_ROUNDING),
            max=round_to_increment(total.max * CATEGORY_WEIGHTS[key] / 100, COST_ROUNDING),
        )
        for key, label in INPUT_CATEGORIES
    ]

    return CostBreakdownArtifact(
        data=CostBreakdownData(
            total=total,
            per_hectare=per_hectare,
            line_items=line_items,
            assumptions=assumptions or ["Cost breakdown based on crop benchmark"],
            confidence=confidence,
        )
    )
