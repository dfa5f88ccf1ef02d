"""
DeskCalc
Main application entry point
"""
import argparse
import atexit
import os
import socket
import subprocess
import sys

import config
import keypad
from calculator import CalculatorEngine
from logging_config import get_logger, setup_logging

logger = get_logger("main")

# Global variable to track API process
api_process = None


def get_local_ip():
    try:
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        # doesn't even have to be reachable
        s.connect(('10.255.255.255', 1))
        IP = s.getsockname()[0]
        s.close()
    except OSError:
        IP = '127.0.0.1'
    return IP


def start_api_server():
    """Start the Flask API server in a separate process"""
    global api_process
    try:
        script_dir = os.path.dirname(os.path.abspath(__file__))
        api_path = os.path.join(script_dir, 'api.py')

        api_process = subprocess.Popen(
            [sys.executable, api_path],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            creationflags=subprocess.CREATE_NEW_CONSOLE if sys.platform == 'win32' else 0
        )
        ip = get_local_ip()
        logger.info("API server started (PID: %s)", api_process.pid)
        print("="*60)
        print(f"{config.APP_NAME} web API is live")
        print(f"Access on this PC:    http://localhost:{config.WEB_PORT}/api")
        print(f"Access on your Phone: http://{ip}:{config.WEB_PORT}/api")
        print("="*60)
    except OSError as e:
        logger.error("Failed to start API server: %s", e)


def cleanup_api_server():
    """Terminate the API server when the main application exits"""
    global api_process
    if api_process:
        try:
            api_process.terminate()
            api_process.wait(timeout=5)
            logger.info("API server stopped")
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.error("Error stopping API server: %s", e)
        api_process = None


def replay_keys(sequence, out=None):
    """Feed a key sequence to a fresh engine, printing the display after each key"""
    engine = CalculatorEngine()
    for event in keypad.parse_sequence(sequence):
        display = engine.handle(event)
        print(display.text, file=out or sys.stdout)
    return engine


def build_parser():
    parser = argparse.ArgumentParser(prog="deskcalc", description=f"{config.APP_NAME} {config.VERSION}")
    parser.add_argument("--keys", metavar="SEQUENCE",
                        help='replay keys without a window, e.g. --keys "3 + 4 × 2 ="')
    parser.add_argument("--no-web", action="store_true", help="do not start the web API")
    parser.add_argument("--dark", action="store_true", help="use the dark palette")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    if args.keys is not None:
        try:
            replay_keys(args.keys)
        except keypad.UnknownKeyError as e:
            print(e, file=sys.stderr)
            return 2
        return 0

    import tkinter as tk
    from database import Database
    from gui import DeskCalcGUI
    from history_manager import HistoryManager

    if not args.no_web:
        start_api_server()
        # Register cleanup function to run on exit
        atexit.register(cleanup_api_server)

    root = tk.Tk()
    DeskCalcGUI(root, history_manager=HistoryManager(Database()), dark_mode=args.dark)
    root.mainloop()

    cleanup_api_server()
    return 0


if __name__ == "__main__":
    sys.exit(main())
