import logging
import sys

_APP_LOGGER_NAME = "app"
_configured = False

def configure_logging(level: str = "INFO") -> None:
    """
    Attach a single stream handler to the ``app`` logger.
    Modules only call ``logging.getLogger(__name__)``; entrypoints call this once.
    """
    global _configured
    if _configured:
        return

    numeric = getattr(logging, str(level).strip().upper(), None)
    if not isinstance(numeric, int):
        numeric = logging.INFO

    logger = logging.getLogger(_APP_LOGGER_NAME)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(numeric)
    logger.propagate = False

    _configured = True
