import threading
from types import MappingProxyType

from logics import config
from logics.csv_decoder import parse_csv_to_dict
from logics.data_model import RunState, Source
from logics.errors import InsufficientSources, NoRunLoaded, UnknownFeature
from logics.file_handler import (
    build_export_path,
    export_to_excel,
    load_individual_files,
    write_csv_export,
)
from logics.projection import (
    build_table_rows,
    export_csv_text,
    filter_features,
    to_dataframe,
)
from logics.reconciliation import classify_features
from logics.reporter import summarize


class ReconciliationEngine:
    """
    Owns the latest RunState and the user's final-value overrides.

    Every run takes a generation token when it starts. Its result is only
    committed if no newer run has started in the meantime (last run wins),
    and a failed run leaves the previous state untouched.
    """

    def __init__(self, separate_all_missing=None):
        self._lock = threading.Lock()
        self._generation = 0
        self._state = None
        self._overrides = {}
        self._separate_all_missing = separate_all_missing

    # ── Run state ───────────────────────────────────────────

    @property
    def state(self):
        return self._state

    @property
    def overrides(self):
        return MappingProxyType(self._overrides)

    def _begin_run(self):
        with self._lock:
            self._generation += 1
            return self._generation

    def _commit(self, state):
        with self._lock:
            if state.generation != self._generation:
                print(f"[RUN] Discarding stale run {state.generation} "
                      f"(current generation is {self._generation})")
                return False
            self._state = state
            self._overrides = {}
        print(f"[RUN] Run {state.generation} committed: {len(state.rows)} features, "
              f"{state.active_slots} sources")
        return True

    def is_current(self, state):
        return state is not None and state is self._state

    # ── Loading ─────────────────────────────────────────────

    def load_sources(self, texts, file4_supplied=None, names=None):
        """
        Run the reconciliation on raw CSV texts already in memory.

        Args:
            texts: Sequence of 3 or 4 raw texts, slot order (index 0 = slot 1).
                   Slot 4 may be None.
            file4_supplied: Whether slot 4 takes part in this run. Defaults to
                   "a 4th text was given". An empty 4th text still counts.
            names: Optional display names per slot.

        Returns:
            The RunState built for this run. It is only the engine's current
            state if no newer run started meanwhile (see is_current).

        Raises:
            InsufficientSources: Fewer than 3 texts (or more than 4), or
                file4_supplied is True without a 4th text.
        """
        texts = list(texts)
        if len(texts) > config.MAX_SOURCES:
            raise InsufficientSources(f"Tối đa {config.MAX_SOURCES} file.")
        if len(texts) < config.MIN_SOURCES or any(t is None for t in texts[:config.MIN_SOURCES]):
            raise InsufficientSources(
                "Vui lòng chọn ít nhất ba file CSV (File 1, File 2, File 3)."
            )

        has_fourth = len(texts) == config.MAX_SOURCES and texts[3] is not None
        if file4_supplied is None:
            file4_supplied = has_fourth
        elif file4_supplied and not has_fourth:
            raise InsufficientSources("File 4 được đánh dấu là đã chọn nhưng không có dữ liệu.")

        token = self._begin_run()
        names = list(names or [])
        sources = {
            slot: Source(
                slot=slot,
                name=names[slot - 1] if slot - 1 < len(names) and names[slot - 1] else f"Data {slot}",
                features=parse_csv_to_dict(text),
                raw_text=text,
            )
            for slot, text in enumerate(texts, start=1)
            if text is not None
        }
        state = self._build_state(token, sources, file4_supplied, failures={})
        self._commit(state)
        return state

    def load_files(self, paths, progress_callback=None):
        """
        Read, decode and reconcile source files from disk.

        Args:
            paths: dict mapping slot (1..4) to file path. Slot 4 absent or None
                   means it was not selected.
            progress_callback: Optional callable(current_idx, total, filename).

        Returns:
            The RunState built for this run. A failure reading slot 4 only
            drops slot 4; it is reported in RunState.failures.

        Raises:
            InsufficientSources: A required slot was not selected or could not
                be read. The previous state is kept.
        """
        missing = [s for s in range(1, config.MIN_SOURCES + 1) if not paths.get(s)]
        if missing:
            raise InsufficientSources(
                "Vui lòng chọn ít nhất ba file CSV (File 1, File 2, File 3)."
            )
        extra = [s for s, p in paths.items() if p and not 1 <= s <= config.MAX_SOURCES]
        if extra:
            raise InsufficientSources(f"Tối đa {config.MAX_SOURCES} file.")

        token = self._begin_run()
        sources, failures = load_individual_files(paths, progress_callback=progress_callback)

        required_failures = {s: f for s, f in failures.items() if s <= config.MIN_SOURCES}
        if required_failures:
            details = '\n'.join(str(f) for _, f in sorted(required_failures.items()))
            raise InsufficientSources(
                f"Không đọc được file bắt buộc:\n{details}",
                failures={s: str(f) for s, f in failures.items()},
            )

        file4_supplied = config.OPTIONAL_SLOT in sources
        state = self._build_state(token, sources, file4_supplied, failures=failures)
        self._commit(state)
        return state

    def _build_state(self, token, sources, file4_supplied, failures):
        feature_maps = [
            sources[slot].features if slot in sources else None
            for slot in range(1, config.MAX_SOURCES + 1)
        ]
        active_slots, rows = classify_features(
            feature_maps, file4_supplied, separate_all_missing=self._separate_all_missing
        )
        stats = summarize(rows, active_slots)
        return RunState(
            generation=token,
            sources=tuple(sources[slot] for slot in range(1, active_slots + 1)),
            active_slots=active_slots,
            rows=rows,
            stats=stats,
            failures=MappingProxyType({s: str(f) for s, f in failures.items()}),
        )

    # ── Final value overrides ───────────────────────────────

    def _require_state(self):
        if self._state is None:
            raise NoRunLoaded("Chưa có dữ liệu. Vui lòng tải file trước.")
        return self._state

    def set_final_value(self, feature, value):
        """Record the user's edit of a final value; the row is not re-classified."""
        with self._lock:
            state = self._require_state()
            if state.row_for(feature) is None:
                raise UnknownFeature(feature)
            self._overrides[feature] = value

    def clear_final_value(self, feature):
        """Drop the user's edit so the classifier's value applies again."""
        with self._lock:
            self._require_state()
            self._overrides.pop(feature, None)

    # ── Projection / export ─────────────────────────────────

    def table_rows(self):
        return build_table_rows(self._require_state(), self._overrides)

    def export_csv(self):
        return export_csv_text(self._require_state(), self._overrides)

    def export_to_file(self, directory, fmt='csv', now=None):
        """
        Write the export into directory under a timestamped name.

        Returns:
            Path of the file written.
        """
        state = self._require_state()
        path = build_export_path(directory, fmt=fmt, now=now)
        if fmt == 'xlsx':
            export_to_excel(to_dataframe(state, self._overrides), state.stats, path)
        else:
            write_csv_export(export_csv_text(state, self._overrides), path)
        return path

    def filter_features(self, query):
        state = self._state
        if state is None:
            return []
        return filter_features(state.features, query)
