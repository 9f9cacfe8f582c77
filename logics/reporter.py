from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from logics.reconciliation import AgreementClass


@dataclass(frozen=True)
class SlotDiff:
    """Disagreement of one non-primary slot against slot 1."""
    slot: int
    diff_count: int
    compare_count: int

    def _rounded(self):
        # Half-up to one decimal, so 1/16 shows 6.3 rather than 6.2
        ratio = Decimal(self.diff_count * 100) / Decimal(self.compare_count)
        return ratio.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)

    @property
    def percent(self):
        """Diff percentage rounded half-up to one decimal; 0.0 when nothing was comparable."""
        if not self.compare_count:
            return 0.0
        return float(self._rounded())

    @property
    def label(self):
        if not self.compare_count:
            return '0%'
        return f"{self._rounded()}%"


@dataclass(frozen=True)
class AggregateStats:
    total_features: int
    same_count: int
    partial_count: int
    different_count: int
    all_missing_count: int
    missing_cell_count: int
    slot_diffs: tuple

    def diff_for(self, slot):
        for sd in self.slot_diffs:
            if sd.slot == slot:
                return sd
        raise KeyError(slot)


def summarize(rows, active_slots):
    """
    Fold classified rows into corpus-level counts and per-slot diff percentages.

    A slot s (2..active_slots) is compared against slot 1 only on rows where
    both cells are non-empty; the row counts as a diff when they are unequal.

    Args:
        rows: Iterable of ClassifiedRow (each with len(values) == active_slots).
        active_slots: 3 or 4.

    Returns:
        AggregateStats snapshot.
    """
    class_counts = {cls: 0 for cls in AgreementClass}
    missing_cells = 0
    total = 0
    diff_counts = {s: 0 for s in range(2, active_slots + 1)}
    compare_counts = {s: 0 for s in range(2, active_slots + 1)}

    for row in rows:
        total += 1
        class_counts[row.agreement] += 1
        missing_cells += sum(1 for v in row.values if v == '')

        primary = row.values[0]
        if not primary:
            continue
        for s in diff_counts:
            other = row.values[s - 1]
            if other:
                compare_counts[s] += 1
                if other != primary:
                    diff_counts[s] += 1

    return AggregateStats(
        total_features=total,
        same_count=class_counts[AgreementClass.SAME],
        partial_count=class_counts[AgreementClass.PARTIAL],
        different_count=class_counts[AgreementClass.DIFFERENT],
        all_missing_count=class_counts[AgreementClass.ALL_MISSING],
        missing_cell_count=missing_cells,
        slot_diffs=tuple(SlotDiff(s, diff_counts[s], compare_counts[s]) for s in diff_counts),
    )


def kpi_lines(stats):
    """KPI captions shown above the comparison table."""
    lines = [
        f"Total Features: {stats.total_features}",
        f"Same (Green): {stats.same_count}",
        f"Partial (Yellow): {stats.partial_count}",
        f"Different (Red): {stats.different_count}",
    ]
    if stats.all_missing_count:
        lines.append(f"All Missing (Blue): {stats.all_missing_count}")
    lines.append(f"Missing Cells: {stats.missing_cell_count}")
    lines.extend(f"File{sd.slot} Diff: {sd.label}" for sd in stats.slot_diffs)
    return lines
