import tkinter as tk
from UIs.app import ReconcilerApp


def main():
    try:
        print("Đang khởi tạo GUI...")
        root = tk.Tk()
        app = ReconcilerApp(root)
        print("GUI khởi tạo thành công. Bắt đầu mainloop...")
        root.mainloop()
    except Exception as e:
        print("LỖI:", str(e))
        import traceback
        traceback.print_exc()


if __name__ == "__main__":
    main()
