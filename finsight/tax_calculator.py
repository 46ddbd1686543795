"""
Progressive income tax calculator (AY 2024-25 old regime slabs)
"""

import math
import logging
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from finsight.utils import format_inr

logger = logging.getLogger(__name__)

# (upper bound of the slab, marginal rate); None means no upper bound
TAX_SLABS = [
    (250000, 0.0),
    (500000, 0.05),
    (1000000, 0.20),
    (None, 0.30),
]

DEDUCTION_SECTIONS = [
    {"code": "80C", "label": "80C Investments", "desc": "ELSS, PPF, NSC, life insurance premiums", "limit": 150000},
    {"code": "24(b)", "label": "Home Loan Interest", "desc": "Interest on a self-occupied home loan", "limit": 200000},
    {"code": "80D", "label": "Medical Insurance", "desc": "Health insurance premiums", "limit": 50000},
    # 80G has no flat cap; the dashboard plans against a fixed donation target
    {"code": "80G", "label": "Donations", "desc": "Donations to eligible funds and charities", "limit": 25000},
]


@dataclass
class SlabCharge:
    lower: float
    upper: Optional[float]
    rate: float
    taxable_amount: float
    tax: float


@dataclass
class TaxBreakdown:
    income: float
    deductions: float
    taxable_income: float
    tax: float
    effective_rate: float
    slabs: List[SlabCharge] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["formatted"] = {
            "tax": format_inr(self.tax),
            "taxable_income": format_inr(self.taxable_income),
        }
        return data


def coerce_amount(value: Any) -> float:
    """Turn user input into a non-negative amount.

    Anything that is not a finite number (None, blank or garbled strings,
    NaN, booleans) counts as zero. Strings may carry a rupee sign, commas
    and spaces, e.g. "₹2,50,000".
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, str):
        cleaned = value.replace("₹", "").replace(",", "").strip()
        if not cleaned:
            return 0.0
        try:
            value = float(cleaned)
        except ValueError:
            logger.debug(f"Ignoring non-numeric amount: {value!r}")
            return 0.0

    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0

    if math.isnan(amount) or math.isinf(amount):
        return 0.0
    return max(amount, 0.0)


def _slab_charges(taxable_income: float) -> List[SlabCharge]:
    charges = []
    lower = 0.0
    for upper, rate in TAX_SLABS:
        if taxable_income <= lower:
            break
        top = taxable_income if upper is None else min(taxable_income, upper)
        portion = top - lower
        charges.append(SlabCharge(
            lower=lower,
            upper=upper,
            rate=rate,
            taxable_amount=portion,
            tax=portion * rate,
        ))
        if upper is None:
            break
        lower = float(upper)
    return charges


def calculate_tax(income: Any, deductions: Any = 0) -> float:
    """Tax owed on income less deductions; never negative"""
    taxable_income = max(coerce_amount(income) - coerce_amount(deductions), 0.0)
    tax = sum(charge.tax for charge in _slab_charges(taxable_income))
    return max(0.0, tax)


def tax_breakdown(income: Any, deductions: Any = 0) -> TaxBreakdown:
    gross = coerce_amount(income)
    deducted = coerce_amount(deductions)
    taxable_income = max(gross - deducted, 0.0)
    charges = _slab_charges(taxable_income)
    tax = max(0.0, sum(charge.tax for charge in charges))
    effective_rate = round(tax / gross * 100, 2) if gross else 0.0

    return TaxBreakdown(
        income=gross,
        deductions=deducted,
        taxable_income=taxable_income,
        tax=tax,
        effective_rate=effective_rate,
        slabs=charges,
    )


def slab_table() -> List[Dict[str, str]]:
    """Rows for the slab reference table"""
    rows = []
    lower = 0
    for upper, rate in TAX_SLABS:
        if lower == 0:
            income_range = f"Up to {format_inr(upper)}"
        elif upper is None:
            income_range = f"Above {format_inr(lower)}"
        else:
            income_range = f"{format_inr(lower + 1)} - {format_inr(upper)}"
        rows.append({"income_range": income_range, "rate": f"{rate * 100:.0f}%"})
        lower = upper
    return rows


@dataclass
class DeductionOpportunity:
    code: str
    category: str
    current: float
    potential: float
    headroom: float
    savings: float


def deduction_opportunities(income: Any, claimed: Optional[Dict[str, Any]] = None) -> List[DeductionOpportunity]:
    """Tax saved by filling each deduction section up to its limit.

    Claims are capped at the section limit. Each section is priced on its
    own against the taxable income left after every current claim, so a
    headroom that crosses a slab boundary is charged at both rates.
    """
    claimed = claimed or {}
    gross = coerce_amount(income)
    current = {
        section["code"]: min(coerce_amount(claimed.get(section["code"])), section["limit"])
        for section in DEDUCTION_SECTIONS
    }
    total_claimed = sum(current.values())
    tax_now = calculate_tax(gross, total_claimed)

    opportunities = []
    for section in DEDUCTION_SECTIONS:
        code = section["code"]
        headroom = section["limit"] - current[code]
        savings = tax_now - calculate_tax(gross, total_claimed + headroom)
        opportunities.append(DeductionOpportunity(
            code=code,
            category=section["label"],
            current=current[code],
            potential=float(section["limit"]),
            headroom=headroom,
            savings=round(savings, 2),
        ))
    return opportunities
