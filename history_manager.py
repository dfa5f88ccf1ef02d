"""
History Manager for DeskCalc
Keeps the tape of completed calculations
"""
import config


class HistoryManager:
    def __init__(self, db):
        self.db = db

    def record(self, display):
        """Store the calculation an engine display reports, if any"""
        calculation = display.calculation
        if calculation is None:
            return False
        self.add_calculation(calculation.expression, calculation.result_text, calculation.approximate)
        return True

    def add_calculation(self, expression, result, approximate=False):
        """Add a calculation to history"""
        self.db.add_calculation(expression, result, approximate)

    def get_calculation_history(self, limit=config.MAX_HISTORY_ITEMS):
        """Get calculation history"""
        return self.db.get_calculations(limit)

    def clear_calculation_history(self):
        """Clear all calculation history"""
        self.db.clear_history()

    def format_calculation_history(self, limit=config.MAX_HISTORY_ITEMS):
        """Format calculation history for display"""
        formatted = []
        for expr, result, timestamp, approximate in self.get_calculation_history(limit):
            sign = "≈" if approximate else "="
            formatted.append(f"{timestamp}: {expr} {sign} {result}")
        return formatted
