"""Ranking, drill-downs, heatmaps and report summaries."""
from dataclasses import dataclass
from typing import Hashable, List, Mapping, Optional, Sequence, Tuple

from reporting.aggregate import GroupAccumulator, KeyFn, Totals, aggregate, grand_totals
from reporting.metrics import safe_div

HEATMAP_BLANK = " "
HEATMAP_THRESHOLDS = ((0.8, "█"), (0.6, "▓"), (0.4, "▒"), (0.2, "░"))
HEATMAP_MIN_GLYPH = "·"


@dataclass(frozen=True)
class ReportSummary:
    totals: Totals
    group_count: int
    groups: Tuple[GroupAccumulator, ...]


def rank(accumulators: Mapping[Hashable, GroupAccumulator], metric: str = "impressions") -> List[GroupAccumulator]:
    """Groups by ``metric`` descending; sorted() is stable so ties keep encounter order."""
    return sorted(accumulators.values(), key=lambda g: getattr(g.totals, metric), reverse=True)


def in_canonical_order(accumulators: Mapping[Hashable, GroupAccumulator], order: Sequence[Hashable]) -> List[GroupAccumulator]:
    return [accumulators[key] for key in order if key in accumulators]


def top_members(group: GroupAccumulator, n: int, key_fn: KeyFn) -> List[GroupAccumulator]:
    """Re-aggregate a group's detail rows by ``key_fn`` and keep the top ``n``."""
    return rank(aggregate(group.detail_rows, key_fn))[:n]


def summarize(accumulators: Mapping[Hashable, GroupAccumulator], order: Optional[Sequence[Hashable]] = None) -> ReportSummary:
    groups = in_canonical_order(accumulators, order) if order is not None else rank(accumulators)
    return ReportSummary(totals=grand_totals(accumulators), group_count=len(accumulators), groups=tuple(groups))


def heat_glyph(ratio: float) -> str:
    for threshold, glyph in HEATMAP_THRESHOLDS:
        if ratio > threshold:
            return glyph
    return HEATMAP_MIN_GLYPH


def heatmap_cells(hours: Mapping[Hashable, GroupAccumulator]) -> List[str]:
    """One glyph per hour 0-23; an hour with no rows is blank, not the minimal glyph."""
    present = [hours[h].totals.impressions for h in range(24) if h in hours]
    peak = max(present) if present else 0
    cells = []
    for h in range(24):
        if h in hours:
            cells.append(heat_glyph(safe_div(hours[h].totals.impressions, peak)))
        else:
            cells.append(HEATMAP_BLANK)
    return cells


def heatmap_header() -> str:
    return "Hour  " + " ".join(f"{h:02d}" for h in range(24))


def heatmap_row(hours: Mapping[Hashable, GroupAccumulator]) -> str:
    """Cells aligned under heatmap_header's two-digit hour labels."""
    return "      " + " ".join(cell.ljust(2) for cell in heatmap_cells(hours))


def share_bar(share: float) -> str:
    """One block per two percentage points of share."""
    return "█" * int(share * 100 // 2)
