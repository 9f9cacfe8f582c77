from tkinter import messagebox

from logics.data_model import DataModel
from logics.engine import ReconciliationEngine
from logics.errors import InsufficientSources

from UIs.data_input_wizard import DataInputWizard
from UIs.comparison_table import ComparisonTable
from UIs.progress_dialog import ProgressDialog


class ReconcilerApp:
    """Main application controller that manages navigation between views."""

    def __init__(self, root, engine=None):
        self.root = root
        self.root.title("Công cụ Đối chiếu Dữ liệu CSV")
        self.root.geometry("1100x800")

        self.model = DataModel()
        self.engine = engine or ReconciliationEngine()

        self.show_data_input_wizard()

    # ── Navigation ──────────────────────────────────────────

    def show_data_input_wizard(self):
        self._clear_window()
        DataInputWizard(self.root, self.model, on_next=self._on_files_selected)

    def show_comparison_table(self):
        self._clear_window()
        ComparisonTable(
            self.root,
            self.model,
            self.engine,
            on_back=self.show_data_input_wizard,
        )

    # ── Logic callbacks ─────────────────────────────────────

    def _on_files_selected(self):
        """Load and reconcile the selected files in a background thread."""
        paths = self.model.selected_paths()
        if not all(paths.get(slot) for slot in (1, 2, 3)):
            messagebox.showerror("Lỗi", "Vui lòng chọn ít nhất ba file CSV (File 1, File 2, File 3).")
            return

        def run(progress_cb):
            return self.engine.load_files(paths, progress_callback=progress_cb)

        ProgressDialog(self.root, "Đang tải file...", "Đang đọc và đối chiếu file...", "File").run(
            run, on_success=self._on_run_finished, on_error=self._on_run_failed
        )

    def _on_run_finished(self, state):
        if not self.engine.is_current(state):
            # A newer run has replaced this one; its own callback will refresh the view
            return

        if state.failures:
            details = '\n'.join(state.failures.values())
            messagebox.showwarning(
                "Cảnh báo",
                f"Bỏ qua File 4 vì không đọc được:\n{details}",
            )

        messagebox.showinfo(
            "Thành công",
            f"Đã đọc {state.active_slots} file. Số feature: {len(state.rows)}",
        )
        self.show_comparison_table()

    def _on_run_failed(self, error):
        if isinstance(error, InsufficientSources):
            messagebox.showerror("Lỗi đọc file", str(error))
        else:
            messagebox.showerror("Lỗi", str(error))

    # ── Helpers ──────────────────────────────────────────────

    def _clear_window(self):
        for widget in self.root.winfo_children():
            widget.destroy()
