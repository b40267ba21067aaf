import tkinter as tk
from tkinter import ttk

from patchpair.config import load_config
from patchpair.logs import setup_logging
from tabs.correction_tab import CorrectionTabFrame


class PatchPairApp(tk.Tk):
    def __init__(self, config=None):
        super().__init__()
        self.config_ = config or load_config()
        self.logger = setup_logging(self.config_.log_dir)
        self.title('PatchPair - Reference Correction')
        self.geometry('1400x800')
        try:
            self.after(100, self.lift)
            self.after(120, lambda: self.attributes('-topmost', True))
            self.after(700, lambda: self.attributes('-topmost', False))
        except tk.TclError:
            pass

        self.notebook = ttk.Notebook(self)
        self.notebook.pack(fill='both', expand=True)

        # Optional status bar at bottom
        self.statusbar = ttk.Label(self, text='Ready')
        self.statusbar.pack(fill='x', side='bottom')

        self._correction_frame = CorrectionTabFrame(self.notebook, self.config_, status_callback=self.set_status)
        self.notebook.add(self._correction_frame, text='Correct')
        self.logger.info(f"Started with worker {self.config_.worker_url}")
        self.protocol('WM_DELETE_WINDOW', self.on_close)

    def set_status(self, txt):
        try:
            self.statusbar.config(text=txt)
        except tk.TclError:
            pass

    def on_close(self):
        self.logger.info("Closing")
        self.destroy()


def main():
    app = PatchPairApp()
    app.mainloop()


if __name__ == '__main__':
    main()
