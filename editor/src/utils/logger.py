"""Global logging and error handling utilities"""
import logging
import sys
from typing import Callable, Optional

# Detect debug mode - True if running from source, False if packaged
DEBUG_MODE = not getattr(sys, 'frozen', False)

logger = logging.getLogger('LayoutEditor')

# Called with (title, message) for user-facing failures
_error_reporter: Optional[Callable[[str, str], None]] = None


def set_error_reporter(reporter: Optional[Callable[[str, str], None]]):
    """Set the callback that presents user-facing errors (toast, dialog...)"""
    global _error_reporter
    _error_reporter = reporter


def loggerRaise(e: Exception, user_message: str = None, title: str = "Error"):
    """Report an exception to the user, log it, then raise it

    Args:
        e: The exception to handle
        user_message: User-friendly message to report (optional)
        title: Title for the report

    The registered error reporter always receives the message. In
    release builds the full traceback is logged as well.
    """
    message = user_message if user_message else str(e)

    if not DEBUG_MODE:
        logger.error(f"{title}: {message}", exc_info=e)

    if _error_reporter:
        try:
            _error_reporter(title, message)
        except Exception:
            logger.exception("Error reporter failed")
    else:
        logger.error(f"ERROR (no reporter): {title} - {message}")

    raise e
