from dataclasses import dataclass

import pandas as pd

from logics import config


@dataclass(frozen=True)
class TableRow:
    """One renderable row of the comparison table."""
    feature: str
    values: tuple
    cell_colors: tuple
    status: str
    row_color: str
    final_value: str
    fill_color: object      # Hex tint for an auto-filled final value, or None
    edited: bool


def current_final_value(row, overrides):
    """The user's override when there is one, otherwise the classifier's value."""
    return overrides.get(row.feature, row.final_value)


def build_table_rows(state, overrides=None):
    """Map a RunState (plus user overrides) to the row list the UI paints."""
    overrides = overrides or {}
    return [
        TableRow(
            feature=row.feature,
            values=row.values,
            cell_colors=row.cell_colors,
            status=row.agreement.value,
            row_color=row.agreement.color,
            final_value=current_final_value(row, overrides),
            fill_color=row.fill_color,
            edited=row.feature in overrides,
        )
        for row in state.rows
    ]


def to_dataframe(state, overrides=None):
    """
    The comparison table as a DataFrame.

    Columns: Feature, one column per source (headed by its file name),
    Status, Final Data.
    """
    overrides = overrides or {}
    columns = ['Feature'] + _unique_headers(state.column_names) + ['Status', 'Final Data']
    records = [
        [row.feature, *row.values, row.agreement.value, current_final_value(row, overrides)]
        for row in state.rows
    ]
    return pd.DataFrame(records, columns=columns)


def _unique_headers(names):
    # Two sources may share a file name; suffix repeats so columns stay distinct
    seen = {}
    headers = []
    for name in names:
        seen[name] = seen.get(name, 0) + 1
        headers.append(name if seen[name] == 1 else f"{name} ({seen[name]})")
    return headers


def export_csv_text(state, overrides=None):
    """
    CSV text of the reconciled result: header "Feature,Final Data", then
    '"<feature>","<final value>"' per feature in sorted order.
    """
    overrides = overrides or {}
    lines = [config.EXPORT_HEADER]
    for row in state.rows:
        lines.append(f'"{row.feature}","{current_final_value(row, overrides)}"')
    return '\n'.join(lines) + '\n'


def filter_features(features, query):
    """
    Features whose name contains query, case-insensitively, in their original order.

    An empty query matches every feature.
    """
    needle = (query or '').lower()
    return [f for f in features if needle in f.lower()]
