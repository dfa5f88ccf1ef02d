"""
Calculator Engine for DeskCalc
Handles key events, register state and decimal arithmetic
"""
import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Context, Decimal, DecimalException, Inexact, InvalidOperation
from enum import Enum
from typing import Optional

import config
from logging_config import get_logger

logger = get_logger("calculator")

ZERO = Decimal(0)
HUNDRED = Decimal(100)
DIGITS = "0123456789"


class Operator(Enum):
    ADD = "+"
    SUB = "-"
    MUL = "×"
    DIV = "÷"


class EventKind(Enum):
    DIGIT = "digit"
    DOT = "dot"
    OPERATOR = "operator"
    EQUALS = "equals"
    ALL_CLEAR = "all_clear"
    CLEAR_ENTRY = "clear_entry"
    BACKSPACE = "backspace"
    TOGGLE_SIGN = "toggle_sign"
    PERCENT = "percent"
    SQRT = "sqrt"
    MEMORY_CLEAR = "memory_clear"
    MEMORY_RECALL = "memory_recall"
    MEMORY_ADD = "memory_add"
    MEMORY_SUBTRACT = "memory_subtract"
    RECALL_ANSWER = "recall_answer"


class ErrorKind(Enum):
    DIVISION_BY_ZERO = "division_by_zero"
    NEGATIVE_SQRT = "negative_sqrt"
    UNHANDLED_FAULT = "unhandled_fault"


class CalculatorError(Exception):
    """Base class for errors the engine turns into an "Error" display"""
    kind = ErrorKind.UNHANDLED_FAULT


class DivisionByZeroError(CalculatorError):
    kind = ErrorKind.DIVISION_BY_ZERO


class NegativeSqrtError(CalculatorError):
    kind = ErrorKind.NEGATIVE_SQRT


@dataclass(frozen=True)
class Event:
    """A logical key press: an event kind plus its digit or operator"""
    kind: EventKind
    value: object = None

    @classmethod
    def digit(cls, d):
        d = str(d)
        if len(d) != 1 or d not in DIGITS:
            raise ValueError(f"Not a digit: {d!r}")
        return cls(EventKind.DIGIT, d)

    @classmethod
    def operator(cls, op):
        if not isinstance(op, Operator):
            op = Operator(op)
        return cls(EventKind.OPERATOR, op)


DOT = Event(EventKind.DOT)
EQUALS = Event(EventKind.EQUALS)
ALL_CLEAR = Event(EventKind.ALL_CLEAR)
CLEAR_ENTRY = Event(EventKind.CLEAR_ENTRY)
BACKSPACE = Event(EventKind.BACKSPACE)
TOGGLE_SIGN = Event(EventKind.TOGGLE_SIGN)
PERCENT = Event(EventKind.PERCENT)
SQRT = Event(EventKind.SQRT)
MEMORY_CLEAR = Event(EventKind.MEMORY_CLEAR)
MEMORY_RECALL = Event(EventKind.MEMORY_RECALL)
MEMORY_ADD = Event(EventKind.MEMORY_ADD)
MEMORY_SUBTRACT = Event(EventKind.MEMORY_SUBTRACT)
RECALL_ANSWER = Event(EventKind.RECALL_ANSWER)


def format_decimal(value: Decimal) -> str:
    """Render a decimal for the display: plain notation, no trailing zeros, no "-0"."""
    if not value.is_finite():
        raise ValueError(f"Cannot display {value}")
    if value.is_zero():
        return "0"
    # normalize() rounds to the context precision, so give it every digit
    exact = Context(prec=max(len(value.as_tuple().digits), 1))
    return format(value.normalize(exact), "f")


def parse_decimal(text: str) -> Decimal:
    """Parse display text; anything malformed counts as zero"""
    try:
        value = Decimal(text)
    except (InvalidOperation, ValueError, TypeError):
        return ZERO
    return value if value.is_finite() else ZERO


_OPERATIONS = {
    Operator.ADD: Context.add,
    Operator.SUB: Context.subtract,
    Operator.MUL: Context.multiply,
    Operator.DIV: Context.divide,
}


@dataclass(frozen=True)
class Calculation:
    """A completed binary operation, as recorded on the tape"""
    lhs: Decimal
    operator: Operator
    rhs: Decimal
    result: Decimal
    approximate: bool = False

    @property
    def expression(self) -> str:
        return f"{format_decimal(self.lhs)} {self.operator.value} {format_decimal(self.rhs)}"

    @property
    def result_text(self) -> str:
        return format_decimal(self.result)

    def to_dict(self) -> dict:
        return {
            "expression": self.expression,
            "result": self.result_text,
            "approximate": self.approximate,
        }


@dataclass(frozen=True)
class Display:
    """What the engine shows after an event"""
    text: str
    is_error: bool = False
    error: Optional[ErrorKind] = None
    calculation: Optional[Calculation] = None

    def to_dict(self) -> dict:
        data = {
            "text": self.text,
            "is_error": self.is_error,
            "error": self.error.value if self.error else None,
        }
        if self.calculation is not None:
            data["calculation"] = self.calculation.to_dict()
        return data


class CalculatorEngine:
    """Desk calculator state machine.

    Holds one pending operator and one accumulator, so operators chain left to
    right with no precedence: 3 + 4 × 2 = gives 14. Every event goes through
    handle(), which never raises for arithmetic faults; errors are reported in
    the returned Display instead.
    """

    def __init__(self, precision=config.PRECISION):
        self.precision = precision
        self._rounding = Context(prec=precision, rounding=ROUND_HALF_UP)
        # Division must terminate within the precision, else it goes to float
        self._exact = Context(prec=precision, rounding=ROUND_HALF_UP)
        self._exact.traps[Inexact] = True

        self._display = "0"
        self._accumulator = ZERO
        self._pending_operator = None
        self._start_new_number = True
        self._just_calculated = False
        self._memory = ZERO
        self._last_answer = ZERO
        self._last_calculation = None

        self._commands = {
            EventKind.DOT: self._type_dot,
            EventKind.EQUALS: self._calculate_result,
            EventKind.ALL_CLEAR: self._all_clear,
            EventKind.CLEAR_ENTRY: self._clear_entry,
            EventKind.BACKSPACE: self._backspace,
            EventKind.TOGGLE_SIGN: self._toggle_sign,
            EventKind.PERCENT: self._percent,
            EventKind.SQRT: self._sqrt,
            EventKind.MEMORY_CLEAR: self._memory_clear,
            EventKind.MEMORY_RECALL: self._memory_recall,
            EventKind.MEMORY_ADD: self._memory_add,
            EventKind.MEMORY_SUBTRACT: self._memory_subtract,
            EventKind.RECALL_ANSWER: self._recall_answer,
        }

    # ── Public surface ─────────────────────────────────────────────────────────

    def handle(self, event: Event) -> Display:
        """Apply one event and return the resulting display"""
        if not isinstance(event, Event):
            raise TypeError(f"Expected an Event, got {type(event).__name__}")

        self._last_calculation = None
        error = None
        try:
            self._dispatch(event)
        except DivisionByZeroError as e:
            logger.info("%s", e)
            error = e.kind
            self._display = config.ERROR_TEXT
            self._accumulator = ZERO
            self._pending_operator = None
            self._start_new_number = True
            self._just_calculated = True
        except NegativeSqrtError as e:
            logger.info("%s", e)
            error = e.kind
            self._display = config.ERROR_TEXT
            self._start_new_number = True
        except Exception:
            logger.exception("Unhandled fault while handling %s", event)
            error = ErrorKind.UNHANDLED_FAULT
            self._display = config.ERROR_TEXT
            self._start_new_number = True
            self._pending_operator = None
            self._accumulator = ZERO
            self._just_calculated = True
            self._last_calculation = None

        return Display(
            text=self._display,
            is_error=self._display == config.ERROR_TEXT,
            error=error,
            calculation=self._last_calculation,
        )

    @property
    def display(self):
        return self._display

    @property
    def accumulator(self):
        return self._accumulator

    @property
    def pending_operator(self):
        return self._pending_operator

    @property
    def memory(self):
        return self._memory

    @property
    def last_answer(self):
        return self._last_answer

    @property
    def start_new_number(self):
        return self._start_new_number

    @property
    def just_calculated(self):
        return self._just_calculated

    def snapshot(self) -> dict:
        """Register contents, formatted for display or JSON"""
        return {
            "display": self._display,
            "accumulator": format_decimal(self._accumulator),
            "pending_operator": self._pending_operator.value if self._pending_operator else None,
            "memory": format_decimal(self._memory),
            "last_answer": format_decimal(self._last_answer),
            "start_new_number": self._start_new_number,
            "just_calculated": self._just_calculated,
        }

    # ── Event handlers ─────────────────────────────────────────────────────────

    def _dispatch(self, event):
        if event.kind is EventKind.DIGIT:
            self._type_digit(event.value)
        elif event.kind is EventKind.OPERATOR:
            self._apply_operator(event.value)
        else:
            self._commands[event.kind]()

    def _current_value(self):
        return parse_decimal(self._display)

    def _type_digit(self, d):
        if self._start_new_number or self._just_calculated or self._display == "0":
            self._display = d
            self._start_new_number = False
            self._just_calculated = False
        else:
            self._display += d

    def _type_dot(self):
        if self._start_new_number or self._just_calculated or self._display == "0":
            self._display = "0."
            self._start_new_number = False
            self._just_calculated = False
        elif "." not in self._display:
            self._display += "."

    def _apply_operator(self, op):
        if self._pending_operator is not None and not self._start_new_number:
            # 3 + 4 × resolves 3 + 4 before queuing ×
            self._compute()
        else:
            self._accumulator = self._current_value()
        self._pending_operator = op
        self._start_new_number = True
        self._just_calculated = False

    def _calculate_result(self):
        if self._pending_operator is not None:
            self._compute()
            self._pending_operator = None
        else:
            self._last_answer = self._current_value()
        self._just_calculated = True
        self._start_new_number = True

    def _compute(self):
        op = self._pending_operator
        lhs = self._accumulator
        rhs = self._current_value()
        if op is Operator.DIV and rhs.is_zero():
            raise DivisionByZeroError(f"Cannot divide {format_decimal(lhs)} by zero")

        approximate = False
        try:
            context = self._exact if op is Operator.DIV else self._rounding
            result = _OPERATIONS[op](context, lhs, rhs)
        except DecimalException as e:
            logger.debug("No exact result for %s %s %s (%s), using float arithmetic",
                         lhs, op.value, rhs, type(e).__name__)
            result = self._float_fallback(op, lhs, rhs)
            approximate = True

        text = format_decimal(result)
        self._accumulator = result
        self._display = text
        self._start_new_number = True
        self._last_answer = result
        self._last_calculation = Calculation(lhs, op, rhs, result, approximate)

    def _float_fallback(self, op, lhs, rhs):
        """Redo an operation in double precision, re-read at the target precision"""
        if op is Operator.DIV:
            result = self._from_float(float(lhs) / float(rhs))
        else:
            result = _OPERATIONS[op](self._rounding, self._from_float(lhs), self._from_float(rhs))
        if not result.is_finite():
            raise ArithmeticError(f"{lhs} {op.value} {rhs} is out of range")
        return result

    def _from_float(self, value):
        return self._rounding.create_decimal(repr(float(value)))

    def _all_clear(self):
        self._display = "0"
        self._accumulator = ZERO
        self._pending_operator = None
        self._start_new_number = True
        self._just_calculated = False

    def _clear_entry(self):
        self._display = "0"
        self._start_new_number = True

    def _backspace(self):
        if self._just_calculated or self._start_new_number:
            self._display = "0"
            self._start_new_number = True
            self._just_calculated = False
            return
        text = self._display
        if len(text) <= 1 or (len(text) == 2 and text.startswith("-")):
            self._display = "0"
            self._start_new_number = True
        else:
            self._display = text[:-1]

    def _toggle_sign(self):
        if self._display in ("0", config.ERROR_TEXT):
            return
        if self._display.startswith("-"):
            self._display = self._display[1:]
        else:
            self._display = "-" + self._display

    def _percent(self):
        value = self._rounding.divide(self._current_value(), HUNDRED)
        self._display = format_decimal(value)
        self._start_new_number = True

    def _sqrt(self):
        value = self._current_value()
        if value < 0:
            raise NegativeSqrtError(f"Cannot take the square root of {format_decimal(value)}")
        self._display = format_decimal(self._from_float(math.sqrt(value)))
        self._start_new_number = True

    def _memory_clear(self):
        self._memory = ZERO

    def _memory_recall(self):
        self._display = format_decimal(self._memory)
        self._start_new_number = True

    def _memory_add(self):
        self._memory = self._rounding.add(self._memory, self._current_value())
        self._start_new_number = True

    def _memory_subtract(self):
        self._memory = self._rounding.subtract(self._memory, self._current_value())
        self._start_new_number = True

    def _recall_answer(self):
        # The recalled answer is an editable entry: digits append to it
        self._display = format_decimal(self._last_answer)
        self._start_new_number = False
        self._just_calculated = False
