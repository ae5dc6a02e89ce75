import logging
import sys

from billbook.settings import settings

TEXT_FORMAT = "%(levelname)s %(name)s: %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Logger name -> level applied outside debug mode.
NOISY_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "sqlalchemy.pool": logging.WARNING,
}


def build_formatter(json_output: bool) -> logging.Formatter:
    if not json_output:
        return logging.Formatter(TEXT_FORMAT)

    from pythonjsonlogger.json import JsonFormatter

    return JsonFormatter(fmt=JSON_FORMAT, rename_fields={"asctime": "timestamp", "levelname": "level"})


def configure_logging() -> None:
    """Install a single stderr handler on the root logger.

    Called from both the ``python -m billbook`` entrypoint and the app module,
    so it replaces existing handlers instead of stacking new ones.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(build_formatter(settings.log_json))

    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)

    # Bill routes log their own outcome.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    if settings.debug:
        return
    for name, level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)
