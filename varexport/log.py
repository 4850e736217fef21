"""
Debug logging for the exporter.

Everything goes through the ``varexport`` logger; ``set_verbose`` attaches a
stderr handler so pipeline decisions (files parsed, fallbacks taken) show up
while debugging an export.
"""
import logging
import sys

logger = logging.getLogger("varexport")

_handler = None


class _DebugFormatter(logging.Formatter):
    """Prefix records with a colored level tag."""

    def format(self, record):
        tag = "\033[94mDEBUG:\033[0m" if record.levelno <= logging.DEBUG else f"{record.levelname}:"
        return f"{tag} {record.getMessage()}"


def set_verbose(value):
    """Enable or disable verbose output on stderr."""
    global _handler
    if value and _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(_DebugFormatter())
        logger.addHandler(_handler)
        logger.setLevel(logging.DEBUG)
    elif not value and _handler is not None:
        logger.removeHandler(_handler)
        _handler = None
        logger.setLevel(logging.NOTSET)


def debug_log(message):
    """Log a debug message."""
    logger.debug(message)
