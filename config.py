"""
DeskCalc Configuration Settings
"""
import os

# Application Settings
APP_NAME = "DeskCalc"
VERSION = "1.0.0"

# Arithmetic Settings
PRECISION = 20          # significant digits for decimal arithmetic
ERROR_TEXT = "Error"

# Display Settings
WINDOW_WIDTH = 360
WINDOW_HEIGHT = 520
DISPLAY_FONT = ("SansSerif", 32)
BUTTON_FONT = ("SansSerif", 20)
LABEL_FONT = ("SansSerif", 11)

# ── Palettes ───────────────────────────────────────────────────────────────────

LIGHT = {
    "bg":           "#DDE6ED",
    "display_bg":   "#FFFFFF",
    "display_fg":   "#1A2332",
    "error_fg":     "#B03A2E",
    "btn_bg":       "#DDE6ED",
    "btn_fg":       "#2B3A4A",
    "operator_fg":  "#1E7A56",
    "equals_bg":    "#2E8B57",
    "equals_fg":    "#FFFFFF",
    "memory_fg":    "#2C5F8A",
    "subtext":      "#6E8090",
}

DARK = {
    "bg":           "#1E2530",
    "display_bg":   "#161C26",
    "display_fg":   "#9ADDB0",
    "error_fg":     "#E55A4E",
    "btn_bg":       "#1E2530",
    "btn_fg":       "#BDD0E0",
    "operator_fg":  "#4DB888",
    "equals_bg":    "#2D8A58",
    "equals_fg":    "#FFFFFF",
    "memory_fg":    "#5E8FC8",
    "subtext":      "#4E6070",
}


def get_theme(dark: bool) -> dict:
    """Return the active colour palette."""
    return DARK if dark else LIGHT


# Database Settings
DB_PATH = os.environ.get(
    "DESKCALC_DB", os.path.join(os.path.dirname(__file__), "deskcalc.db")
)

# History Settings
MAX_HISTORY_ITEMS = 100

# Logging Settings
LOG_LEVEL = os.environ.get("DESKCALC_LOG_LEVEL", "INFO")
LOG_FILE = os.environ.get("DESKCALC_LOG_FILE")

# Web API settings
WEB_HOST = '0.0.0.0'
WEB_PORT = int(os.environ.get("DESKCALC_PORT", 8888))

# Web sessions: idle seconds before a calculator session is dropped, and the cap
SESSION_TTL = 30 * 60
MAX_SESSIONS = 1000
