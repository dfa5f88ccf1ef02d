"""
Tests for the Tk window's display handling, without opening a window
"""
import pytest

pytest.importorskip("tkinter")

import config
from calculator import CalculatorEngine
from gui import DeskCalcGUI


class FakeLabel:
    def __init__(self):
        self.options = {}

    def config(self, **kw):
        self.options.update(kw)


class FakeHistory:
    def __init__(self):
        self.recorded = []

    def record(self, display):
        self.recorded.append(display.calculation.expression)
        return True


@pytest.fixture
def window():
    gui = DeskCalcGUI.__new__(DeskCalcGUI)
    gui.calculator = CalculatorEngine()
    gui.history_manager = FakeHistory()
    gui.T = config.get_theme(False)
    gui.display = FakeLabel()
    gui.status = FakeLabel()
    return gui


def click(window, sequence):
    for label in sequence.split():
        window.calculator_button_click(label)


def test_buttons_update_display(window):
    click(window, "3 + 4 =")
    assert window.display.options["text"] == "7"
    assert window.status.options["text"] == "3 + 4 = 7"
    assert window.history_manager.recorded == ["3 + 4"]


def test_status_cleared_after_other_keys(window):
    click(window, "3 + 4 =")
    click(window, "AC")
    assert window.display.options["text"] == "0"
    assert window.status.options["text"] == ""


def test_error_colour_and_status(window):
    click(window, "5 ÷ 0 =")
    assert window.display.options["fg"] == config.LIGHT["error_fg"]
    assert window.status.options["text"] == "division by zero"
    click(window, "2")
    assert window.display.options["fg"] == config.LIGHT["display_fg"]
    assert window.status.options["text"] == ""
