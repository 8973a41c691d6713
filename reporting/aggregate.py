"""Fold metric rows into per-group accumulators."""
from dataclasses import dataclass, field, fields, replace
from functools import reduce
from typing import Callable, Dict, FrozenSet, Hashable, Iterable, Mapping, Tuple

from reporting.labels import extract_key
from reporting.rows import MetricRow

KeyFn = Callable[[MetricRow], Tuple[Hashable, str]]


@dataclass(frozen=True)
class Totals:
    impressions: int = 0
    clicks: int = 0
    cost_micros: int = 0
    conversions: float = 0.0
    all_conversions: float = 0.0
    view_through_conversions: float = 0.0
    interactions: int = 0
    video_views: int = 0
    search_impression_share_sum: float = 0.0
    search_impression_share_count: int = 0

    def __add__(self, other: "Totals") -> "Totals":
        return Totals(**{f.name: getattr(self, f.name) + getattr(other, f.name) for f in fields(self)})

    @classmethod
    def of(cls, row: MetricRow) -> "Totals":
        has_share = row.search_impression_share is not None
        return cls(
            impressions=row.impressions,
            clicks=row.clicks,
            cost_micros=row.cost_micros,
            conversions=row.conversions,
            all_conversions=row.all_conversions,
            view_through_conversions=row.view_through_conversions,
            interactions=row.interactions,
            video_views=row.video_views,
            search_impression_share_sum=row.search_impression_share if has_share else 0.0,
            search_impression_share_count=1 if has_share else 0,
        )


@dataclass(frozen=True)
class GroupAccumulator:
    """Running state for one report bucket.

    ``members`` maps a member kind ("campaigns", "ad_groups") to the distinct
    contributing entities; ``detail_rows`` keeps every folded row for drill-downs.
    """

    key: Hashable
    label: str
    totals: Totals = field(default_factory=Totals)
    members: Mapping[str, FrozenSet[str]] = field(default_factory=dict)
    detail_rows: Tuple[MetricRow, ...] = ()

    def member_count(self, kind: str) -> int:
        return len(self.members.get(kind, frozenset()))


def _row_members(row: MetricRow) -> Dict[str, str]:
    return {
        "campaigns": row.campaign_id or row.campaign_name,
        "ad_groups": row.ad_group_id or row.ad_group_name,
    }


def fold(
    accumulators: Mapping[Hashable, GroupAccumulator],
    row: MetricRow,
    key_fn: KeyFn = extract_key,
) -> Dict[Hashable, GroupAccumulator]:
    """Return a new mapping with ``row`` folded into its group; the input is untouched."""
    key, label = key_fn(row)
    current = accumulators.get(key) or GroupAccumulator(key=key, label=label)

    members = dict(current.members)
    for kind, member in _row_members(row).items():
        if member:
            members[kind] = members.get(kind, frozenset()) | {member}

    updated = replace(
        current,
        totals=current.totals + Totals.of(row),
        members=members,
        detail_rows=current.detail_rows + (row,),
    )
    result = dict(accumulators)
    result[key] = updated
    return result


def aggregate(rows: Iterable[MetricRow], key_fn: KeyFn = extract_key) -> Dict[Hashable, GroupAccumulator]:
    """Fold every row; iteration order of the result is first-encounter order."""
    return reduce(lambda acc, row: fold(acc, row, key_fn), rows, {})


def grand_totals(accumulators: Mapping[Hashable, GroupAccumulator]) -> Totals:
    return sum((group.totals for group in accumulators.values()), Totals())
