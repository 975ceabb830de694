"""
Centralized logging configuration for NetGuardian.

Every NetGuardian module logs through the handlers configured here: a
size-rotated agent log, the console, and a separate crash log. The enforcers
write through ``log`` and ``log_crash``, which never raise.
"""

import logging
import sys
import traceback
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Optional

from . import config

CRASH_LOGGER_NAME = "netguardian.crash"


class NetGuardianLogger:
    """Process-wide logging setup shared by the agent and the CLI."""

    _initialized = False
    _debug_enabled = False

    @classmethod
    def setup(cls, debug: bool = False, force_reinit: bool = False) -> None:
        """
        Attach the NetGuardian handlers to the root logger.

        Args:
            debug: Lower the console threshold and root level to DEBUG
            force_reinit: Replace handlers installed by an earlier call
        """
        if cls._initialized and not force_reinit:
            return

        root = logging.getLogger()
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()

        cls._debug_enabled = debug
        root.setLevel(logging.DEBUG if debug else logging.INFO)

        formatter = logging.Formatter(config.LOG_FORMAT, datefmt=config.LOG_DATE_FORMAT)
        for handler in (cls._file_handler(), cls._console_handler()):
            if handler is not None:
                handler.setFormatter(formatter)
                root.addHandler(handler)
        cls._add_crash_handler()

        cls._initialized = True
        logging.getLogger(__name__).debug(
            f"NetGuardian logging initialized (debug={'on' if debug else 'off'})"
        )

    @classmethod
    def _file_handler(cls) -> Optional[logging.Handler]:
        """Size-rotated agent log; it records DEBUG regardless of the console level."""
        try:
            config.LOG_DIR.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(
                config.LOG_FILE,
                maxBytes=config.LOG_MAX_BYTES,
                backupCount=config.LOG_BACKUP_COUNT,
                encoding="utf-8",
            )
        except OSError as e:
            print(f"Warning: log file {config.LOG_FILE} unavailable: {e}", file=sys.stderr)
            return None
        handler.setLevel(logging.DEBUG)
        return handler

    @classmethod
    def _console_handler(cls) -> logging.Handler:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG if cls._debug_enabled else logging.INFO)
        return handler

    @classmethod
    def _add_crash_handler(cls) -> None:
        """Crash reports also go to their own file; they still propagate to root."""
        crash_logger = logging.getLogger(CRASH_LOGGER_NAME)
        for handler in crash_logger.handlers[:]:
            crash_logger.removeHandler(handler)
            handler.close()
        try:
            config.LOG_DIR.mkdir(parents=True, exist_ok=True)
            crash_handler = logging.FileHandler(config.CRASH_LOG_FILE, encoding="utf-8")
        except OSError as e:
            print(f"Warning: crash log {config.CRASH_LOG_FILE} unavailable: {e}", file=sys.stderr)
            return
        crash_handler.setFormatter(logging.Formatter("%(message)s"))
        crash_logger.addHandler(crash_handler)

    @classmethod
    def get_logger(cls, name: Optional[str] = None) -> logging.Logger:
        """Return a named logger, setting up the handlers on first use."""
        if not cls._initialized:
            cls.setup()
        return logging.getLogger(name)

    @classmethod
    def is_debug_enabled(cls) -> bool:
        return cls._debug_enabled

    @classmethod
    def set_debug(cls, debug: bool) -> None:
        """Switch the debug level of a running process."""
        if debug != cls._debug_enabled:
            cls.setup(debug=debug, force_reinit=True)


def format_crash_report(message: str, error: BaseException) -> str:
    """Render a crash banner with the exception chain."""
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
    cause = error.__cause__ or error.__context__
    stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
    lines = [
        "================== CRASH REPORT ==================",
        f"Time: {timestamp}",
        f"Message: {message}",
        f"Exception: {type(error).__module__}.{type(error).__qualname__}",
        f"Error: {error}",
        "StackTrace:",
        stack.rstrip(),
        f"Inner Exception: {cause if cause is not None else 'None'}",
        "==================================================",
    ]
    return "\n".join(lines)


# Module-level shortcuts
def setup_logging(debug: bool = False, force_reinit: bool = False) -> None:
    """Set up centralized logging. Wrapper for NetGuardianLogger.setup()."""
    NetGuardianLogger.setup(debug=debug, force_reinit=force_reinit)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance. Wrapper for NetGuardianLogger.get_logger()."""
    return NetGuardianLogger.get_logger(name)


def is_debug_enabled() -> bool:
    """Check if debug logging is enabled. Wrapper for NetGuardianLogger.is_debug_enabled()."""
    return NetGuardianLogger.is_debug_enabled()


def set_debug(debug: bool) -> None:
    """Change debug level at runtime. Wrapper for NetGuardianLogger.set_debug()."""
    NetGuardianLogger.set_debug(debug)


def log(message: str, error: Optional[BaseException] = None) -> None:
    """Fire-and-forget log call; an error adds its traceback at ERROR level."""
    try:
        logger = logging.getLogger("netguardian")
        if error is None:
            logger.info(message)
        else:
            logger.error(f"{message}: {error}", exc_info=error)
    except Exception as e:
        print(f"Warning: log write failed: {e}", file=sys.stderr)


def log_crash(message: str, error: BaseException) -> None:
    """Write a crash report to the main log and the crash log. Never raises."""
    try:
        logging.getLogger(CRASH_LOGGER_NAME).critical(format_crash_report(message, error))
    except Exception as e:
        print(f"Warning: crash report write failed: {e}", file=sys.stderr)
