"""Logging configuration for the simulator."""
import logging
import sys

_configured = False


def configure_logging(level: str = "INFO", structured: bool = False):
    """Configure root logging for the application.

    When ``structured`` is set, messages are written verbatim because
    RunEventLogger has already rendered them as JSON.
    """
    global _configured

    fmt = "%(message)s" if structured else "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper()))

    if not _configured:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt))
        root.addHandler(handler)
        _configured = True

    # Disable excessive third-party logging
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
