"""
Database Manager for DeskCalc
Handles SQLite storage of the calculation tape
"""
import sqlite3
from datetime import datetime

import config
from logging_config import get_logger

logger = get_logger("database")


class Database:
    def __init__(self, db_path=None):
        self.db_path = db_path or config.DB_PATH
        self.init_database()

    def get_connection(self):
        """Create and return a database connection"""
        return sqlite3.connect(self.db_path)

    def init_database(self):
        """Initialize database tables"""
        conn = self.get_connection()
        cursor = conn.cursor()

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS calculations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                expression TEXT NOT NULL,
                result TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                approximate INTEGER DEFAULT 0
            )
        ''')

        # Migration: older tapes have no approximate column
        cursor.execute("PRAGMA table_info(calculations)")
        columns = [column[1] for column in cursor.fetchall()]
        if 'approximate' not in columns:
            cursor.execute('ALTER TABLE calculations ADD COLUMN approximate INTEGER DEFAULT 0')
            logger.info("Database migrated: added approximate column to calculations")

        conn.commit()
        conn.close()

    def add_calculation(self, expression, result, approximate=False):
        """Add calculation to history"""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        conn = self.get_connection()
        cursor = conn.cursor()
        cursor.execute('''
            INSERT INTO calculations (expression, result, timestamp, approximate)
            VALUES (?, ?, ?, ?)
        ''', (expression, result, timestamp, int(approximate)))
        conn.commit()
        conn.close()

    def get_calculations(self, limit=config.MAX_HISTORY_ITEMS):
        """Retrieve calculation history, newest first"""
        conn = self.get_connection()
        cursor = conn.cursor()
        cursor.execute('''
            SELECT expression, result, timestamp, approximate FROM calculations
            ORDER BY id DESC LIMIT ?
        ''', (limit,))
        calculations = [(expr, result, ts, bool(approx)) for expr, result, ts, approx in cursor.fetchall()]
        conn.close()
        return calculations

    def count_calculations(self):
        """Number of calculations on the tape"""
        conn = self.get_connection()
        cursor = conn.cursor()
        cursor.execute('SELECT COUNT(*) FROM calculations')
        count = cursor.fetchone()[0]
        conn.close()
        return count

    def clear_history(self):
        """Clear calculation history"""
        conn = self.get_connection()
        cursor = conn.cursor()
        cursor.execute('DELETE FROM calculations')
        conn.commit()
        conn.close()
