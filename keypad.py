"""
Keypad layout for DeskCalc
Maps button labels and keyboard keys to calculator events
"""
import calculator
from calculator import DIGITS, Event, Operator

# Button grid, top to bottom. Empty strings are placeholders.
BUTTON_ROWS = [
    ["MC", "MR", "M+", "M-"],
    ["√", "%", "←", "AC"],
    ["7", "8", "9", "÷"],
    ["4", "5", "6", "×"],
    ["1", "2", "3", "-"],
    ["+/-", "0", ".", "+"],
    ["CE", "=", "ANS", ""],
]

OPERATOR_LABELS = tuple(op.value for op in Operator)
MEMORY_LABELS = ("MC", "MR", "M+", "M-")

LABEL_EVENTS = {
    ".": calculator.DOT,
    "=": calculator.EQUALS,
    "AC": calculator.ALL_CLEAR,
    "CE": calculator.CLEAR_ENTRY,
    "←": calculator.BACKSPACE,
    "+/-": calculator.TOGGLE_SIGN,
    "%": calculator.PERCENT,
    "√": calculator.SQRT,
    "MC": calculator.MEMORY_CLEAR,
    "MR": calculator.MEMORY_RECALL,
    "M+": calculator.MEMORY_ADD,
    "M-": calculator.MEMORY_SUBTRACT,
    "ANS": calculator.RECALL_ANSWER,
}

# Plain-ASCII spellings accepted from the web API and the command line
ALIASES = {
    "*": "×",
    "x": "×",
    "/": "÷",
    "sqrt": "√",
    "ans": "ANS",
    "+-": "+/-",
    "neg": "+/-",
    "back": "←",
    "bs": "←",
    "c": "AC",
    "ac": "AC",
    "ce": "CE",
    "enter": "=",
    "mc": "MC",
    "mr": "MR",
    "m+": "M+",
    "m-": "M-",
}

# Tk keysyms that have no printable character
KEYSYM_LABELS = {
    "Return": "=",
    "KP_Enter": "=",
    "BackSpace": "←",
    "Delete": "CE",
    "Escape": "AC",
}

KEY_CHARS = DIGITS + ".+-*/%="


class UnknownKeyError(ValueError):
    """Raised when a label does not name any calculator key"""


def event_for_label(label):
    """Return the Event for a button label or one of its aliases"""
    key = str(label).strip()
    key = ALIASES.get(key.lower(), key)

    if len(key) == 1 and key in DIGITS:
        return Event.digit(key)
    if key in OPERATOR_LABELS:
        return Event.operator(key)
    if key in LABEL_EVENTS:
        return LABEL_EVENTS[key]
    raise UnknownKeyError(f"Unknown key: {label!r}")


def event_for_key(char, keysym=""):
    """Map a Tk key press to an Event, or None if the key is not bound"""
    if keysym in KEYSYM_LABELS:
        return event_for_label(KEYSYM_LABELS[keysym])
    if char in ("\r", "\n"):
        return calculator.EQUALS
    if len(char) == 1 and char in KEY_CHARS:
        return event_for_label(char)
    return None


def parse_sequence(text):
    """Split "12.5 + 3 =" into events; number tokens expand into one press per character."""
    events = []
    for token in text.split():
        if all(c in DIGITS + "." for c in token):
            events.extend(event_for_label(c) for c in token)
        else:
            events.append(event_for_label(token))
    return events
