"""
Flask REST API for DeskCalc
Exposes calculator sessions and the calculation tape as JSON endpoints
"""
import threading
import time
import uuid
from dataclasses import dataclass, field

from flask import Flask, jsonify, request
from flask_cors import CORS

import config
import keypad
from calculator import CalculatorEngine
from database import Database
from history_manager import HistoryManager
from logging_config import get_logger, setup_logging

logger = get_logger("api")


@dataclass
class Session:
    engine: CalculatorEngine = field(default_factory=CalculatorEngine)
    lock: threading.Lock = field(default_factory=threading.Lock)
    last_used: float = 0.0


class SessionStore:
    """Calculator engines keyed by session id.

    Sessions idle for longer than ttl seconds are dropped, and once
    max_sessions are open the least recently used one makes room for a new one.
    """

    def __init__(self, ttl=config.SESSION_TTL, max_sessions=config.MAX_SESSIONS, clock=time.monotonic):
        self.ttl = ttl
        self.max_sessions = max_sessions
        self._clock = clock
        self._sessions = {}
        self._lock = threading.Lock()

    def create(self):
        session_id = uuid.uuid4().hex
        session = Session(last_used=self._clock())
        with self._lock:
            self._evict(session.last_used)
            self._sessions[session_id] = session
        return session_id, session

    def get(self, session_id):
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            now = self._clock()
            if now - session.last_used > self.ttl:
                del self._sessions[session_id]
                logger.info("Session %s expired", session_id)
                return None
            session.last_used = now
            return session

    def remove(self, session_id):
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def _evict(self, now):
        expired = [sid for sid, s in self._sessions.items() if now - s.last_used > self.ttl]
        for sid in expired:
            del self._sessions[sid]
        while self._sessions and len(self._sessions) >= self.max_sessions:
            oldest = min(self._sessions, key=lambda sid: self._sessions[sid].last_used)
            del self._sessions[oldest]
            expired.append(oldest)
        if expired:
            logger.info("Dropped %d idle session(s)", len(expired))

    def __len__(self):
        with self._lock:
            return len(self._sessions)


def _unknown_session(session_id):
    return jsonify({'success': False, 'error': f'Unknown session: {session_id}'}), 404


def create_app(db_path=None, sessions=None):
    """Build the Flask app with its own session store and history database"""
    app = Flask(__name__)
    CORS(app)  # Enable CORS for all routes

    db = Database(db_path)
    history_manager = HistoryManager(db)
    if sessions is None:
        sessions = SessionStore()

    @app.route('/api')
    def api_info():
        """API information page"""
        return f"""
        <html>
        <head><title>{config.APP_NAME} API</title></head>
        <body style="font-family: Arial; padding: 40px;">
            <h1>{config.APP_NAME} API Server</h1>
            <h2>Available Endpoints:</h2>
            <ul>
                <li>POST /api/sessions - Start a calculator session</li>
                <li>GET /api/sessions/&lt;id&gt; - Display and registers</li>
                <li>POST /api/sessions/&lt;id&gt;/press - Press a key: {{"key": "7"}} or {{"keys": "1 + 2 ="}}</li>
                <li>DELETE /api/sessions/&lt;id&gt; - End a session</li>
                <li><a href="/api/calculations">/api/calculations</a> - Calculation history</li>
            </ul>
        </body>
        </html>
        """

    @app.route('/api/sessions', methods=['POST'])
    def create_session():
        """Start a new calculator session"""
        session_id, session = sessions.create()
        logger.info("Session %s started (%d open)", session_id, len(sessions))
        return jsonify({
            'success': True,
            'data': {
                'session_id': session_id,
                'display': session.engine.display
            }
        }), 201

    @app.route('/api/sessions/<session_id>')
    def get_session(session_id):
        """Get the display and registers of a session"""
        session = sessions.get(session_id)
        if session is None:
            return _unknown_session(session_id)
        with session.lock:
            registers = session.engine.snapshot()
        return jsonify({
            'success': True,
            'data': {
                'display': registers.pop('display'),
                'registers': registers
            }
        })

    @app.route('/api/sessions/<session_id>', methods=['DELETE'])
    def delete_session(session_id):
        """End a session"""
        if not sessions.remove(session_id):
            return _unknown_session(session_id)
        logger.info("Session %s closed", session_id)
        return jsonify({'success': True})

    @app.route('/api/sessions/<session_id>/press', methods=['POST'])
    def press_keys(session_id):
        """Press one key, or a whitespace-separated sequence of keys"""
        session = sessions.get(session_id)
        if session is None:
            return _unknown_session(session_id)

        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            payload = {}
        try:
            if 'keys' in payload:
                events = keypad.parse_sequence(str(payload['keys']))
            elif 'key' in payload:
                events = [keypad.event_for_label(payload['key'])]
            else:
                events = []
        except keypad.UnknownKeyError as e:
            return jsonify({'success': False, 'error': str(e)}), 400
        if not events:
            return jsonify({'success': False, 'error': 'Request needs a "key" or "keys" field'}), 400

        finished = []
        with session.lock:
            for event in events:
                display = session.engine.handle(event)
                if display.calculation is not None:
                    finished.append(display)

        data = display.to_dict()
        data['calculations'] = [d.calculation.to_dict() for d in finished]
        try:
            for done in finished:
                history_manager.record(done)
        except Exception as e:
            logger.exception("Saving calculations failed for session %s", session_id)
            return jsonify({'success': False, 'error': str(e), 'data': data}), 500
        return jsonify({'success': True, 'data': data})

    @app.route('/api/calculations')
    def get_calculations():
        """Get calculation history"""
        try:
            limit = int(request.args.get('limit', config.MAX_HISTORY_ITEMS))
        except ValueError:
            return jsonify({'success': False, 'error': 'limit must be an integer'}), 400
        try:
            calculations = history_manager.get_calculation_history(limit)

            formatted = []
            for expression, result, timestamp, approximate in calculations:
                formatted.append({
                    'expression': expression,
                    'result': result,
                    'timestamp': timestamp,
                    'approximate': approximate
                })

            return jsonify({
                'success': True,
                'data': formatted,
                'count': len(formatted)
            })
        except Exception as e:
            logger.exception("Reading calculation history failed")
            return jsonify({'success': False, 'error': str(e)}), 500

    @app.route('/api/calculations', methods=['DELETE'])
    def clear_calculations():
        """Clear calculation history"""
        try:
            history_manager.clear_calculation_history()
            return jsonify({'success': True})
        except Exception as e:
            logger.exception("Clearing calculation history failed")
            return jsonify({'success': False, 'error': str(e)}), 500

    return app


if __name__ == '__main__':
    setup_logging()
    print("\n" + "="*60)
    print(f"{config.APP_NAME} API Server")
    print("="*60)
    print(f"Server starting on http://{config.WEB_HOST}:{config.WEB_PORT}")
    print(f"Access from this device: http://localhost:{config.WEB_PORT}/api")
    print("="*60 + "\n")

    create_app().run(host=config.WEB_HOST, port=config.WEB_PORT, debug=False)
