"""Safety rails applied before any mutation is sent: previews, dry runs, budget and bid caps."""
import logging
from dataclasses import dataclass, field
from typing import Any, List, Sequence

logger = logging.getLogger(__name__)

LARGE_CHANGE_PERCENT = 50.0
BID_FIELDS = ("bid", "cpc_bid")


class BudgetChangeError(ValueError):
    """A budget change exceeds the configured absolute cap."""


class BidLimitError(ValueError):
    """A CPC bid exceeds the configured maximum bid."""


@dataclass(frozen=True)
class Change:
    field: str
    old: Any
    new: Any
    label: str = ""


@dataclass(frozen=True)
class MutationPreview:
    text: str
    changes: List[Change]
    warnings: List[str] = field(default_factory=list)
    requires_confirmation: bool = True


def _percent_change(current: float, new: float) -> float:
    return abs(new - current) / current * 100


@dataclass
class MutationGuard:
    """Per-call mutation settings.

    ``max_budget_change`` and ``max_bid`` are in currency units; budget and bid
    values carried by a Change are in micros.
    """

    dry_run: bool = False
    max_budget_change: float = 1000.0
    max_bid: float = 100.0
    require_confirmation: bool = True

    def check_budget_change(self, current: float, new: float) -> List[str]:
        """Raise BudgetChangeError above the cap; return warnings for large changes."""
        change = abs(new - current)
        if self.max_budget_change and change > self.max_budget_change:
            raise BudgetChangeError(
                f"Budget change of ${change:.2f} exceeds maximum allowed change of ${self.max_budget_change:g}"
            )
        if current > 0 and _percent_change(current, new) > LARGE_CHANGE_PERCENT:
            return [f"Large budget change detected: {_percent_change(current, new):.1f}% change"]
        return []

    def check_bid(self, current: float, new: float) -> List[str]:
        """Raise BidLimitError above max_bid; return warnings for large bid moves."""
        if self.max_bid and new > self.max_bid:
            raise BidLimitError(f"Bid of ${new:.2f} exceeds maximum allowed bid of ${self.max_bid:g}")
        if current > 0 and _percent_change(current, new) > LARGE_CHANGE_PERCENT:
            return [f"Large bid change detected: {_percent_change(current, new):.1f}% change"]
        return []

    @staticmethod
    def format_change(change: Change) -> str:
        if change.field == "budget" or change.field in BID_FIELDS:
            label = change.label or ("Budget" if change.field == "budget" else "Bid")
            return f"{label}: ${change.old / 1_000_000:.2f} → ${change.new / 1_000_000:.2f}"
        if change.field == "status":
            return f"{change.label or 'Status'}: {change.old} → {change.new}"
        return f"{change.label or change.field}: {change.old} → {change.new}"

    def _warnings(self, change: Change) -> List[str]:
        if change.field == "budget":
            found = self.check_budget_change(change.old / 1_000_000, change.new / 1_000_000)
        elif change.field in BID_FIELDS:
            found = self.check_bid(change.old / 1_000_000, change.new / 1_000_000)
        else:
            return []
        return [f"{change.label}: {w}" if change.label else w for w in found]

    def preview(self, entity_type: str, entity_name: str, changes: Sequence[Change]) -> MutationPreview:
        warnings = [w for change in changes for w in self._warnings(change)]

        lines = [
            "🔍 DRY RUN MODE" if self.dry_run else "⚠️  CHANGES TO BE APPLIED",
            f"{entity_type}: {entity_name}",
            "",
            "Changes:",
            *(f"  • {self.format_change(c)}" for c in changes),
        ]
        if warnings:
            lines += ["", "Warnings:", *(f"  ⚠️  {w}" for w in warnings)]
        lines += [
            "",
            "✅ No changes will be applied (dry run mode)" if self.dry_run
            else "⚡ These changes will be applied immediately",
        ]

        for w in warnings:
            logger.warning(f"{entity_type} '{entity_name}': {w}")

        return MutationPreview(
            text="\n".join(lines),
            changes=list(changes),
            warnings=warnings,
            requires_confirmation=self.require_confirmation and not self.dry_run,
        )
