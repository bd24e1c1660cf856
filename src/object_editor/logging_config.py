"""
Colored console logging for the object editor.

Diagnostics go to stderr: the editor owns the terminal while it runs and the
final result line should not be mixed into anything piped from stdout.
"""

import logging
import os
import sys
from typing import Optional, TextIO


# ANSI color codes
class Colors:
    """ANSI color codes for terminal output."""
    RESET = '\033[0m'
    BOLD = '\033[1m'

    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    BLUE = '\033[34m'
    CYAN = '\033[36m'


# Third-party loggers that are only interesting with --debug
SDK_LOGGERS = ('boto3', 'botocore', 's3transfer', 'urllib3', 'google', 'google.auth', 'google.resumable_media')


class ColoredFormatter(logging.Formatter):
    """
    Formatter that adds colors to log levels and SDK logger names.

    Color scheme:
    - DEBUG: Cyan
    - INFO: Green
    - WARNING: Yellow
    - ERROR: Red
    - CRITICAL: Bold Red
    - Cloud SDK logs (boto, google, urllib3): Blue
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.CYAN,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    SDK_KEYWORDS = ['boto', 'google', 'urllib3', 's3transfer']

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        use_colors: bool = True,
        stream: Optional[TextIO] = None,
    ):
        """
        Initialize the colored formatter.

        Args:
            fmt: Log format string
            datefmt: Date format string
            use_colors: Whether to use colors (disabled automatically for non-TTY streams)
            stream: Stream the handler writes to, used for TTY detection
        """
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors and self._supports_color(stream or sys.stderr)

    @staticmethod
    def _supports_color(stream: TextIO) -> bool:
        """
        Check if the stream supports color output.

        Returns:
            True if colors are supported, False otherwise
        """
        if os.environ.get('NO_COLOR'):
            return False
        if os.environ.get('FORCE_COLOR'):
            return True
        if not hasattr(stream, 'isatty') or not stream.isatty():
            return False
        if sys.platform == 'win32':
            return bool(os.environ.get('ANSICON') or os.environ.get('WT_SESSION'))
        return True

    def _is_sdk_log(self, record: logging.LogRecord) -> bool:
        logger_name = record.name.lower()
        return any(keyword in logger_name for keyword in self.SDK_KEYWORDS)

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors:
            return super().format(record)

        levelname_orig = record.levelname
        name_orig = record.name

        level_color = self.LEVEL_COLORS.get(record.levelno, '')
        record.levelname = f"{level_color}{record.levelname}{Colors.RESET}"
        if self._is_sdk_log(record):
            record.name = f"{Colors.BLUE}{record.name}{Colors.RESET}"

        try:
            return super().format(record)
        finally:
            record.levelname = levelname_orig
            record.name = name_orig


def parse_level(value: Optional[str], default: int = logging.WARNING) -> int:
    """Map a level name such as ``info`` or a number such as ``10`` to a logging level."""
    if not value:
        return default
    value = value.strip()
    if value.isdigit():
        return int(value)
    level = logging.getLevelName(value.upper())
    return level if isinstance(level, int) else default


def setup_colored_logging(
    level: int = logging.WARNING,
    format_string: Optional[str] = None,
    date_format: Optional[str] = None,
    use_colors: bool = True,
    sdk_level: Optional[int] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Configure colored logging for the command line tool.

    Replaces any handlers on the root logger with a single stderr handler.

    Args:
        level: The logging level (default: WARNING)
        format_string: Custom format string (default: timestamp, name, level, message)
        date_format: Custom date format string
        use_colors: Whether to use colors (auto-detects TTY support)
        sdk_level: Level for cloud SDK loggers (default: WARNING unless level is DEBUG)
        stream: Output stream (default: sys.stderr)
    """
    if format_string is None:
        format_string = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    if date_format is None:
        date_format = '%Y-%m-%d %H:%M:%S'

    stream = stream or sys.stderr
    formatter = ColoredFormatter(fmt=format_string, datefmt=date_format, use_colors=use_colors, stream=stream)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(stream)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if sdk_level is None:
        sdk_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in SDK_LOGGERS:
        logging.getLogger(name).setLevel(sdk_level)
