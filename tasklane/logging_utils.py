import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """Configure simple, consistent logging for the app.

    Format: time level logger message k=v ...
    """
    root = logging.getLogger()
    level = level.upper()
    if root.handlers:
        # Respect existing (e.g., uvicorn, pytest) handlers but align level
        root.setLevel(level)
        return

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    root.addHandler(handler)
    root.setLevel(level)
    # SQL echo only when explicitly debugging
    logging.getLogger("sqlalchemy.engine").setLevel(logging.DEBUG if level == "DEBUG" else logging.WARNING)
