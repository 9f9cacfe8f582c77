import tkinter as tk
from tkinter import ttk


class SearchBar(ttk.Frame):
    """
    A "Search Feature" entry that reports its text after the user stops typing.

    Args:
        parent: Parent widget.
        on_search: callable(query) invoked with the current text.
        initial: Initial query text.
        debounce_ms: Milliseconds to wait after keystroke before calling on_search.

    Example:
        bar = SearchBar(frame, on_search=lambda q: table.apply_filter(q))
        bar.pack(fill='x')
    """

    def __init__(self, parent, *, on_search, initial='', debounce_ms=300):
        super().__init__(parent)
        self._on_search = on_search
        self._debounce_ms = debounce_ms
        self._timer = None

        tk.Label(self, text="Search Feature:").pack(side='left')
        self._search_var = tk.StringVar(value=initial)
        entry = ttk.Entry(self, textvariable=self._search_var, width=40)
        entry.pack(side='left', fill='x', expand=True, padx=(4, 0))
        entry.bind('<KeyRelease>', self._on_key)

    def _on_key(self, _event=None):
        if self._timer is not None:
            self.after_cancel(self._timer)
        self._timer = self.after(self._debounce_ms, self._fire)

    def _fire(self):
        self._timer = None
        self._on_search(self._search_var.get())


class KpiBar(ttk.LabelFrame):
    """Row of KPI captions (counts and per-file diff percentages)."""

    def __init__(self, parent, title="Thống kê"):
        super().__init__(parent, text=title, padding=5)
        self._labels = []

    def set_lines(self, lines):
        for lbl in self._labels:
            lbl.destroy()
        self._labels = []
        for line in lines:
            lbl = tk.Label(self, text=line, font=("Arial", 10, "bold"))
            lbl.pack(side='left', padx=8)
            self._labels.append(lbl)
