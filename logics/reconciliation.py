from collections import Counter
from dataclasses import dataclass
from enum import Enum

from logics import config


class AgreementClass(Enum):
    """Agreement level of one feature row across the active sources."""

    SAME = 'Same'
    PARTIAL = 'Partial'
    DIFFERENT = 'Different'
    ALL_MISSING = 'AllMissing'

    @property
    def color(self):
        return _CLASS_COLORS[self]


_CLASS_COLORS = {
    AgreementClass.SAME: config.COLOR_SAME,
    AgreementClass.PARTIAL: config.COLOR_PARTIAL,
    AgreementClass.DIFFERENT: config.COLOR_DIFFERENT,
    AgreementClass.ALL_MISSING: config.COLOR_ALL_MISSING,
}


@dataclass(frozen=True)
class EmptyCell:
    """
    Stand-in for a blank cell during distinctness checks.

    Each blank cell gets its own marker (keyed by slot), so two blanks never
    compare equal to each other or to any real value. Markers are never
    returned as a final value.
    """
    slot: int


@dataclass(frozen=True)
class ClassifiedRow:
    feature: str
    values: tuple
    agreement: AgreementClass
    final_value: str
    cell_colors: tuple

    @property
    def auto_filled(self):
        """True when the final value column should be pre-filled and tinted."""
        return self.final_value != '' and self.agreement in (
            AgreementClass.SAME, AgreementClass.PARTIAL
        )

    @property
    def fill_color(self):
        if not self.auto_filled:
            return None
        return config.FILL_SAME if self.agreement is AgreementClass.SAME else config.FILL_PARTIAL


# ── Feature Aligner ─────────────────────────────────────────

def align_features(feature_maps):
    """
    Return the sorted, de-duplicated union of feature names across all maps.

    Sorting is plain ordinal string order (no locale rules).
    """
    all_features = set()
    for fmap in feature_maps:
        if fmap:
            all_features.update(fmap.keys())
    return sorted(all_features)


def active_slot_count(file4_supplied):
    """3 or 4 columns, decided once per run by whether a 4th file was selected."""
    return config.MAX_SOURCES if file4_supplied else config.MIN_SOURCES


def row_values(feature, feature_maps, active_slots):
    """Collect one value per active slot; a map lacking the feature contributes ""."""
    values = []
    for idx in range(active_slots):
        fmap = feature_maps[idx] if idx < len(feature_maps) else None
        values.append((fmap or {}).get(feature, ''))
    return tuple(values)


# ── Row Classifier ──────────────────────────────────────────

def classify_row(feature, values, active_slots, separate_all_missing=None):
    """
    Classify one feature row and derive its recommended final value.

    Rules (blank cells are tagged so they are pairwise distinct):
        1) Same:      one distinct value and no blank cell -> final = that value.
        2) Different: every cell distinct                   -> final = "".
        3) Partial:   anything else -> final = most common non-blank value,
                      ties go to the value seen first scanning left to right.

    When separate_all_missing is on and four sources are active, a row with
    every cell blank is AllMissing instead of Different.

    Args:
        feature: Feature name (row key).
        values: Sequence of cell strings, one per active slot.
        active_slots: 3 or 4.
        separate_all_missing: Overrides config.SEPARATE_ALL_MISSING_CLASS when not None.

    Returns:
        ClassifiedRow.

    Raises:
        ValueError: If len(values) does not match active_slots.
    """
    values = tuple(values)
    if len(values) != active_slots:
        raise ValueError(
            f"Row '{feature}' has {len(values)} values but {active_slots} active slots."
        )
    if separate_all_missing is None:
        separate_all_missing = config.SEPARATE_ALL_MISSING_CLASS

    tagged = [EmptyCell(slot) if v == '' else v for slot, v in enumerate(values, start=1)]
    unique_count = len(set(tagged))
    non_empty = [v for v in values if v != '']

    if unique_count == 1 and non_empty:
        agreement = AgreementClass.SAME
        final_value = values[0]
    elif separate_all_missing and active_slots == config.MAX_SOURCES and not non_empty:
        agreement = AgreementClass.ALL_MISSING
        final_value = ''
    elif unique_count == active_slots:
        agreement = AgreementClass.DIFFERENT
        final_value = ''
    else:
        agreement = AgreementClass.PARTIAL
        # Counter keeps first-seen order, and most_common() is stable for ties
        final_value = Counter(non_empty).most_common(1)[0][0] if non_empty else ''

    cell_colors = tuple(config.COLOR_EMPTY if v == '' else agreement.color for v in values)
    return ClassifiedRow(feature, values, agreement, final_value, cell_colors)


def classify_features(feature_maps, file4_supplied, separate_all_missing=None):
    """
    Align the maps and classify every feature row.

    Args:
        feature_maps: List of FeatureMaps indexed by slot - 1 (slot 4 may be None).
        file4_supplied: Whether a 4th file was selected for this run.

    Returns:
        tuple: (active_slots, rows) where rows is a tuple of ClassifiedRow in
        sorted feature order.
    """
    active_slots = active_slot_count(file4_supplied)
    used_maps = list(feature_maps)[:active_slots]
    rows = tuple(
        classify_row(
            feature,
            row_values(feature, used_maps, active_slots),
            active_slots,
            separate_all_missing=separate_all_missing,
        )
        for feature in align_features(used_maps)
    )
    return active_slots, rows
