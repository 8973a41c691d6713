"""Derived metrics and number formatting shared by every report."""
import math
from dataclasses import dataclass

from reporting.aggregate import Totals

MICROS_PER_UNIT = 1_000_000


def safe_div(numerator: float, denominator: float) -> float:
    """Division that yields exactly 0.0 for a zero denominator or a non-finite result."""
    if not denominator:
        return 0.0
    result = numerator / denominator
    return result if math.isfinite(result) else 0.0


@dataclass(frozen=True)
class DerivedMetrics:
    """Ratios derived from a group's totals.

    ctr, conv_rate, share and avg_search_impression_share are fractions;
    avg_cpc, cost_per_conversion, avg_cpm and cost are currency units.
    """

    ctr: float
    avg_cpc: float
    conv_rate: float
    cost_per_conversion: float
    avg_cpm: float
    share: float
    cost: float
    avg_search_impression_share: float


def derive(totals: Totals, grand_impressions: int = 0) -> DerivedMetrics:
    return DerivedMetrics(
        ctr=safe_div(totals.clicks, totals.impressions),
        avg_cpc=safe_div(totals.cost_micros, totals.clicks) / MICROS_PER_UNIT,
        conv_rate=safe_div(totals.conversions, totals.clicks),
        cost_per_conversion=safe_div(totals.cost_micros, totals.conversions) / MICROS_PER_UNIT,
        avg_cpm=safe_div(totals.cost_micros * 1000, totals.impressions) / MICROS_PER_UNIT,
        share=safe_div(totals.impressions, grand_impressions),
        cost=totals.cost_micros / MICROS_PER_UNIT,
        avg_search_impression_share=safe_div(
            totals.search_impression_share_sum, totals.search_impression_share_count
        ),
    )


def fmt_int(value: int) -> str:
    return f"{int(value):,}"


def fmt_currency(value: float) -> str:
    return f"${value:,.2f}"


def fmt_micros(micros: int) -> str:
    return fmt_currency(micros / MICROS_PER_UNIT)


def fmt_pct(fraction: float, digits: int = 2) -> str:
    return f"{fraction * 100:.{digits}f}%"


def fmt_float(value: float) -> str:
    return f"{value:,.2f}"
