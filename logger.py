"""
Logging utility with timestamps and colors
"""
import os
import sys
from datetime import datetime
from enum import Enum

from colorama import Fore, Style, init

init(autoreset=True)


class LogLevel(Enum):
    DEBUG = ("DEBUG", Fore.CYAN)
    INFO = ("INFO", Fore.WHITE)
    WARNING = ("WARNING", Fore.YELLOW)
    ERROR = ("ERROR", Fore.RED)
    SUCCESS = ("SUCCESS", Fore.GREEN)


class Logger:
    """Simple colored logger with timestamps"""

    def __init__(self, debug: bool = False):
        self.debug_enabled = debug

    @staticmethod
    def _format_message(level: LogLevel, message: str) -> str:
        """Format message with timestamp and color"""
        timestamp = datetime.now().strftime("%d.%m.%Y %H:%M:%S")
        level_name, color = level.value

        # Format: 18.10.2025 14:30:45 [INFO] Message
        return f"{Fore.GREEN}{timestamp}{Fore.RESET} {color}{Style.BRIGHT}[{level_name}]{Style.RESET_ALL} {message}"

    def debug(self, message: str):
        """Log debug message (cyan), only when debug mode is on"""
        if self.debug_enabled:
            print(self._format_message(LogLevel.DEBUG, message))

    def info(self, message: str):
        print(self._format_message(LogLevel.INFO, message))

    def warning(self, message: str):
        print(self._format_message(LogLevel.WARNING, message))

    def error(self, message: str):
        """Log error message (red) to stderr"""
        print(self._format_message(LogLevel.ERROR, message), file=sys.stderr)

    def success(self, message: str):
        print(self._format_message(LogLevel.SUCCESS, message))


log = Logger(debug=os.getenv("DEBUG_MODE", "").lower() in ("1", "true", "yes"))
