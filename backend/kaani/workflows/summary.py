# /kaani/workflows/summary.py

"""
Loan officer MVP summary built from collected slots.

Flow packages name their slots differently (`province`, `location_province`,
`farmer_cropPrimary`...), so lookups try an exact key first and then any key
that contains, or is contained in, the wanted name.
"""

from typing import Any, Dict, List, Optional, TypedDict

DEFAULT_COST_PER_HECTARE = 50000


class LoanOfficerSummary(TypedDict):
    summary_text: str
    flags: List[str]
    assumptions: List[str]
    missing_critical: List[str]


def _get_slot(slots: Dict[str, Any], *names: str) -> Optional[Any]:
    for name in names:
        value = slots.get(name)
        if value not in (None, ""):
            return value
    for name in names:
        wanted = name.lower()
        for key, value in slots.items():
            if value in (None, ""):
                continue
            k = key.lower()
            if wanted in k or k in wanted:
                return value
    return None


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _money(amount: float) -> str:
    return f"₱{amount:,.0f}" if float(amount).is_integer() else f"₱{amount:,.2f}"


def _fmt(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_loan_officer_summary(slots: Dict[str, Any]) -> LoanOfficerSummary:
    """
    Markdown summary of what a loan officer has collected so far, with the
    flags, assumptions and critical gaps that go alongside it.
    """
    flags: List[str] = []
    assumptions: List[str] = []
    missing_critical: List[str] = []
    sections: List[str] = []

    province = _get_slot(slots, "location_province", "province")
    municipality = _get_slot(slots, "location_municipality", "municipality")
    barangay = _get_slot(slots, "location_barangay", "barangay")

    if not province and not municipality:
        missing_critical.append("location")
        flags.append("Missing location information")
    else:
        parts = [_fmt(p) for p in (barangay, municipality, province) if p]
        sections.append(f"**Location:** {', '.join(parts)}")

    crop = _get_slot(slots, "farmer_cropPrimary", "cropPrimary", "crop")
    if not crop:
        missing_critical.append("crop")
        flags.append("Missing primary crop information")
    else:
        sections.append(f"**Primary Crop:** {_fmt(crop)}")

    farm_size = _get_slot(slots, "farmer_farmSize", "farmSize", "farm_size_ha", "hectares")
    if not farm_size:
        missing_critical.append("farmSize")
        flags.append("Missing farm size")
    else:
        sections.append(f"**Farm Size:** {_fmt(farm_size)} hectares")

    production = []
    for label, key in (("Inputs", "inputs"), ("Fertilizer", "fertilizer"), ("Pesticide", "pesticide"), ("Seed", "seed")):
        value = _get_slot(slots, key)
        if value:
            production.append(f"{label}: {_fmt(value)}")
    if production:
        sections.append(f"**Production Needs:** {', '.join(production)}")

    loan_amount = _as_number(_get_slot(slots, "loanAmount", "loan_amount"))
    hectares = _as_number(farm_size)
    if loan_amount:
        sections.append(f"**Loan Amount Requested:** {_money(loan_amount)}")
    elif hectares:
        cost_per_ha = _as_number(_get_slot(slots, "cost_per_ha", "costPerHa")) or DEFAULT_COST_PER_HECTARE
        working_capital = hectares * cost_per_ha
        sections.append(
            f"**Estimated Working Capital:** {_money(working_capital)} "
            f"({_fmt(hectares)} ha × {_money(cost_per_ha)}/ha)"
        )
        assumptions.append(f"Used default cost per hectare ({_money(cost_per_ha)}) for estimation")
    else:
        sections.append("**Loan Amount:** TBD")
        flags.append("Loan amount not specified")

    planting = _get_slot(slots, "plantingDate", "planting_date")
    harvest = _get_slot(slots, "harvestDate", "harvest_date")
    if not planting and not harvest:
        flags.append("Missing production cycle dates")
    else:
        dates = []
        if planting:
            dates.append(f"Planting: {planting}")
        if harvest:
            dates.append(f"Harvest: {harvest}")
        sections.append(f"**Production Cycle:** {', '.join(dates)}")

    summary_text = "# Loan Officer Summary (MVP)\n\n" + "\n\n".join(sections)
    if assumptions:
        summary_text += "\n\n## Assumptions\n" + "".join(f"- {a}\n" for a in assumptions)
    if missing_critical:
        summary_text += "\n\n## Missing Critical Information\n" + "".join(f"- {m}\n" for m in missing_critical)

    return {
        "summary_text": summary_text,
        "flags": flags,
        "assumptions": assumptions,
        "missing_critical": missing_critical,
    }
