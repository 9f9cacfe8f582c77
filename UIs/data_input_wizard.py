import tkinter as tk
from tkinter import ttk, filedialog

from logics import config


class DataInputWizard:
    """First screen – pick the CSV file for each slot (File 4 is optional)."""

    def __init__(self, root, model, on_next):
        self.root = root
        self.model = model
        self.on_next = on_next

        self._build_ui()

    def _build_ui(self):
        frame = ttk.Frame(self.root)
        frame.pack(pady=20, padx=20, fill='both', expand=True)

        tk.Label(
            frame,
            text="Chọn 3 file CSV bắt buộc (File 4 không bắt buộc)",
            font=("Arial", 12),
        ).pack(pady=10)

        self._labels = {}
        for slot in range(1, config.MAX_SOURCES + 1):
            caption = f"File {slot}:" if slot != config.OPTIONAL_SLOT else f"File {slot} (không bắt buộc):"
            tk.Label(frame, text=caption).pack(anchor='w')

            row = ttk.Frame(frame)
            row.pack(anchor='w', pady=2)
            ttk.Button(row, text=f"Browse File {slot}", command=lambda s=slot: self._browse(s)).pack(side='left')
            if slot == config.OPTIONAL_SLOT:
                ttk.Button(row, text="Bỏ chọn", command=lambda s=slot: self._clear(s)).pack(side='left', padx=5)

            path = self.model.file_paths.get(slot)
            lbl = tk.Label(frame, text=path or "Chưa chọn", fg="green" if path else "gray")
            lbl.pack(anchor='w')
            self._labels[slot] = lbl

        ttk.Button(frame, text="Đối chiếu (Process >>)", command=self.on_next).pack(pady=30)

    def _browse(self, slot):
        path = filedialog.askopenfilename(
            filetypes=[("CSV files", "*.csv"), ("All files", "*.*")],
        )
        if path:
            self.model.file_paths[slot] = path
            self._labels[slot].config(text=path, fg="green")

    def _clear(self, slot):
        self.model.file_paths[slot] = None
        self._labels[slot].config(text="Chưa chọn", fg="gray")
