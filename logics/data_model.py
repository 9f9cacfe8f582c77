from dataclasses import dataclass, field
from types import MappingProxyType

from logics import config


@dataclass(frozen=True)
class Source:
    """One selected input file, identified by its slot (1..4)."""
    slot: int
    name: str
    features: MappingProxyType
    raw_text: str = field(default='', repr=False)


@dataclass(frozen=True)
class RunState:
    """
    Immutable snapshot of one reconciliation run.

    A new run builds a new RunState and the engine swaps it in as a whole;
    nothing here is mutated after construction.
    """
    generation: int
    sources: tuple          # Source per active slot, in slot order
    active_slots: int       # 3 or 4
    rows: tuple             # ClassifiedRow in sorted feature order
    stats: object           # AggregateStats
    failures: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))

    @property
    def features(self):
        return [row.feature for row in self.rows]

    @property
    def column_names(self):
        """Display header per active slot (file name, or 'Data <slot>')."""
        return [src.name for src in self.sources]

    def row_for(self, feature):
        for row in self.rows:
            if row.feature == feature:
                return row
        return None


class DataModel:
    """Shared state container for the desktop application."""

    def __init__(self):
        self.file_paths = {slot: None for slot in range(1, config.MAX_SOURCES + 1)}
        self.search_query = ''                      # Current text in the search box
        self.last_export_path = None                # Path of the most recent export

    def selected_paths(self):
        return {slot: path for slot, path in self.file_paths.items() if path is not None}
