import tkinter as tk
from tkinter import ttk, messagebox, filedialog

from logics.reporter import kpi_lines
from logics.errors import ReconciliationError

from UIs.widgets import SearchBar, KpiBar


# Row background per agreement colour tag
ROW_BACKGROUNDS = {
    'green': '#c8e6c9',
    'yellow': '#fff9c4',
    'red': '#ffcdd2',
    'blue': '#bbdefb',
}
EMPTY_CELL_TEXT = '∅'


class ComparisonTable:
    """
    Second screen – the reconciled table.

    One row per feature, one column per source file, plus an editable
    "Final Data" column (double-click to edit). Rows are coloured by
    agreement class; blank source cells are shown as ∅.
    """

    def __init__(self, root, model, engine, *, on_back):
        self.root = root
        self.model = model
        self.engine = engine
        self.on_back = on_back
        self._editor = None

        self._build_ui()
        self._populate()
        self.apply_filter(self.model.search_query)

    def _build_ui(self):
        state = self.engine.state

        top = ttk.Frame(self.root)
        top.pack(fill='x', padx=10, pady=(10, 0))

        self.kpi_bar = KpiBar(top)
        self.kpi_bar.pack(fill='x')
        self.kpi_bar.set_lines(kpi_lines(state.stats))

        self.search_bar = SearchBar(top, on_search=self.apply_filter, initial=self.model.search_query)
        self.search_bar.pack(fill='x', pady=8)

        self._columns = ['feature'] + [f"slot{s.slot}" for s in state.sources] + ['final']
        table_frame = ttk.Frame(self.root)
        table_frame.pack(fill='both', expand=True, padx=10, pady=5)

        self.tree = ttk.Treeview(table_frame, columns=self._columns, show="headings", height=20)
        self.tree.heading('feature', text="Feature")
        self.tree.column('feature', width=260)
        for src in state.sources:
            self.tree.heading(f"slot{src.slot}", text=src.name)
            self.tree.column(f"slot{src.slot}", width=160)
        self.tree.heading('final', text="Final Data")
        self.tree.column('final', width=200)

        for color, bg in ROW_BACKGROUNDS.items():
            self.tree.tag_configure(color, background=bg)
        self.tree.tag_configure('edited', font=("Arial", 10, "bold"))

        scrollbar = ttk.Scrollbar(table_frame, command=self.tree.yview)
        self.tree.configure(yscrollcommand=scrollbar.set)
        scrollbar.pack(side='right', fill='y')
        self.tree.pack(fill='both', expand=True)
        self.tree.bind('<Double-1>', self._on_double_click)

        btn_frame = ttk.Frame(self.root)
        btn_frame.pack(pady=10)
        ttk.Button(btn_frame, text="<< Chọn lại file", command=self.on_back).pack(side='left', padx=10)
        ttk.Button(btn_frame, text="Xuất CSV", command=lambda: self._export('csv')).pack(side='left', padx=10)
        ttk.Button(btn_frame, text="Xuất Excel", command=lambda: self._export('xlsx')).pack(side='left', padx=10)

    # ── Table content ───────────────────────────────────────

    def _populate(self):
        self.tree.delete(*self.tree.get_children())
        self._order = []
        for row in self.engine.table_rows():
            self.tree.insert("", "end", iid=row.feature, values=self._row_values(row), tags=self._row_tags(row))
            self._order.append(row.feature)

    @staticmethod
    def _row_values(row):
        cells = [v if v != '' else EMPTY_CELL_TEXT for v in row.values]
        return [row.feature, *cells, row.final_value]

    @staticmethod
    def _row_tags(row):
        tags = [row.row_color]
        if row.edited:
            tags.append('edited')
        return tags

    def apply_filter(self, query):
        """Show only features containing query (case-insensitive); keep sorted order."""
        self.model.search_query = query
        visible = set(self.engine.filter_features(query))
        for idx, feature in enumerate(self._order):
            if feature in visible:
                self.tree.reattach(feature, "", idx)
            else:
                self.tree.detach(feature)

    # ── Final value editing ─────────────────────────────────

    def _on_double_click(self, event):
        item = self.tree.identify_row(event.y)
        column = self.tree.identify_column(event.x)
        if not item or column != f"#{len(self._columns)}":
            return
        self._open_editor(item, column)

    def _open_editor(self, feature, column):
        self._close_editor()
        bbox = self.tree.bbox(feature, column)
        if not bbox:
            return
        x, y, width, height = bbox
        current = self.tree.set(feature, 'final')

        editor = ttk.Entry(self.tree)
        editor.insert(0, current)
        editor.select_range(0, tk.END)
        editor.place(x=x, y=y, width=width, height=height)
        editor.focus_set()

        editor.bind('<Return>', lambda _e: self._commit_edit(feature, editor))
        editor.bind('<FocusOut>', lambda _e: self._commit_edit(feature, editor))
        editor.bind('<Escape>', lambda _e: self._close_editor())
        self._editor = editor

    def _commit_edit(self, feature, editor):
        if self._editor is not editor:
            return
        value = editor.get()
        try:
            self.engine.set_final_value(feature, value)
        except ReconciliationError as e:
            messagebox.showerror("Lỗi", str(e))
            self._close_editor()
            return
        self.tree.set(feature, 'final', value)
        tags = set(self.tree.item(feature, 'tags'))
        tags.add('edited')
        self.tree.item(feature, tags=list(tags))
        self._close_editor()

    def _close_editor(self):
        # Clear first: destroy() fires <FocusOut>, which must see no open editor
        editor, self._editor = self._editor, None
        if editor is not None:
            editor.destroy()

    # ── Export ──────────────────────────────────────────────

    def _export(self, fmt):
        directory = filedialog.askdirectory(title="Chọn thư mục xuất file")
        if not directory:
            return
        try:
            path = self.engine.export_to_file(directory, fmt=fmt)
        except (OSError, ReconciliationError) as e:
            messagebox.showerror("Lỗi xuất file", str(e))
            return
        self.model.last_export_path = path
        messagebox.showinfo("Thành công", f"Đã xuất file: {path}")
