import tkinter as tk
from tkinter import ttk
import threading
import traceback


class ProgressDialog:
    """
    Modal progress dialog shown while the engine loads the selected files.

    Args:
        root: Parent Tk window.
        title: Dialog window title.
        body_label: Bold heading shown at the top.
        status_prefix: Prefix for the live status line, e.g. "File" → "File: data.csv".
    """

    def __init__(self, root, title, body_label, status_prefix=""):
        self._root = root
        self._status_prefix = status_prefix

        self._dialog = tk.Toplevel(root)
        self._dialog.title(title)
        self._dialog.geometry("400x150")
        self._dialog.resizable(False, False)
        self._dialog.transient(root)
        self._dialog.grab_set()

        tk.Label(self._dialog, text=body_label, font=("Arial", 12, "bold")).pack(pady=10)

        self._status_label = tk.Label(self._dialog, text=f"{status_prefix}: ", fg="blue")
        self._status_label.pack(pady=5)

        self._progress_label = tk.Label(self._dialog, text="", fg="gray")
        self._progress_label.pack(pady=5)

        self._progress_bar = ttk.Progressbar(self._dialog, mode='determinate', length=300)
        self._progress_bar.pack(pady=10, padx=20)

    def run(self, fn, on_success, on_error):
        """
        Execute fn in a background thread, then call on_success or on_error on the main thread.

        Args:
            fn: callable(progress_cb) → result.
            on_success: callable(result), main thread.
            on_error: callable(exception), main thread. Receives the exception
                object so callers can tell InsufficientSources from other errors.
        """
        def background():
            try:
                def progress_cb(current, total, label):
                    self._root.after(0, lambda: self._update_ui(current, total, label))

                result = fn(progress_cb)
            except Exception as e:
                print(f"\n[ERROR] {e}")
                traceback.print_exc()
                self._root.after(0, lambda exc=e: self._finish(lambda: on_error(exc)))
                return
            self._root.after(0, lambda: self._finish(lambda: on_success(result)))

        threading.Thread(target=background, daemon=True).start()

    def _update_ui(self, current, total, label):
        if self._dialog.winfo_exists():
            self._status_label.config(text=f"{self._status_prefix}: {label}")
            self._progress_label.config(text=f"Tiến độ: {current}/{total}")
            self._progress_bar['value'] = (current / total) * 100

    def _finish(self, callback):
        if self._dialog.winfo_exists():
            self._dialog.destroy()
        callback()
