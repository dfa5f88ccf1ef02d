"""
GUI for DeskCalc
Tkinter window: display, button grid and keyboard bindings
"""
import tkinter as tk

import config
import keypad
from calculator import CalculatorEngine
from logging_config import get_logger

logger = get_logger("gui")


class DeskCalcGUI:
    def __init__(self, root, history_manager=None, dark_mode=False):
        self.root = root
        self.root.title(config.APP_NAME)
        self.root.geometry(f"{config.WINDOW_WIDTH}x{config.WINDOW_HEIGHT}")
        self.root.resizable(False, False)

        self.calculator = CalculatorEngine()
        self.history_manager = history_manager

        self.dark_mode = dark_mode
        self.T = config.get_theme(self.dark_mode)
        self.root.configure(bg=self.T["bg"])

        self.create_widgets()
        self.root.bind('<Key>', self.on_key_press)

    def create_widgets(self):
        """Build the display and the button grid"""
        T = self.T

        self.display = tk.Label(
            self.root, text=self.calculator.display, anchor=tk.E,
            font=config.DISPLAY_FONT, bg=T["display_bg"], fg=T["display_fg"],
            padx=10, pady=10,
        )
        self.display.pack(side=tk.TOP, fill=tk.X, padx=6, pady=6)

        self.status = tk.Label(self.root, text="", anchor=tk.W, font=config.LABEL_FONT,
                               bg=T["bg"], fg=T["subtext"])
        self.status.pack(side=tk.BOTTOM, fill=tk.X, padx=8)

        panel = tk.Frame(self.root, bg=T["bg"])
        panel.pack(side=tk.TOP, fill=tk.BOTH, expand=True, padx=6, pady=6)

        for r, row in enumerate(keypad.BUTTON_ROWS):
            panel.rowconfigure(r, weight=1)
            for c, label in enumerate(row):
                panel.columnconfigure(c, weight=1)
                if not label:
                    continue  # placeholder
                btn = tk.Button(panel, text=label, font=config.BUTTON_FONT,
                                command=lambda lab=label: self.calculator_button_click(lab),
                                **self._button_colours(label))
                btn.grid(row=r, column=c, sticky="nsew", padx=3, pady=3)

    def _button_colours(self, label):
        T = self.T
        if label == "=":
            return {"bg": T["equals_bg"], "fg": T["equals_fg"]}
        if label in keypad.OPERATOR_LABELS:
            return {"bg": T["btn_bg"], "fg": T["operator_fg"]}
        if label in keypad.MEMORY_LABELS:
            return {"bg": T["btn_bg"], "fg": T["memory_fg"]}
        return {"bg": T["btn_bg"], "fg": T["btn_fg"]}

    def calculator_button_click(self, button):
        """Handle calculator button clicks"""
        self.update_display(self.calculator.handle(keypad.event_for_label(button)))

    def on_key_press(self, event):
        """Handle keyboard input"""
        calc_event = keypad.event_for_key(event.char, event.keysym)
        if calc_event is not None:
            self.update_display(self.calculator.handle(calc_event))

    def update_display(self, display):
        """Show an engine display and log any finished calculation"""
        T = self.T
        self.display.config(text=display.text,
                            fg=T["error_fg"] if display.is_error else T["display_fg"])

        calculation = display.calculation
        if calculation is not None:
            sign = "≈" if calculation.approximate else "="
            self.status.config(text=f"{calculation.expression} {sign} {calculation.result_text}")
            if self.history_manager is not None:
                try:
                    self.history_manager.record(display)
                except Exception:
                    logger.exception("Could not save calculation to history")
        elif display.error is not None:
            self.status.config(text=display.error.value.replace("_", " "))
        else:
            self.status.config(text="")
