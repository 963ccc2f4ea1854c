import logging

LOGGER_NAME = "shopdesk"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Return a logger under the application namespace."""
    if name != LOGGER_NAME and not name.startswith(LOGGER_NAME + "."):
        name = f"{LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(app) -> logging.Logger:
    """
    Attach a single stream handler to the application logger.

    Safe to call for every app created in the same process (tests build
    many apps): the handler is only installed once, the level follows the
    latest config.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    if not any(getattr(h, "_shopdesk", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._shopdesk = True
        logger.addHandler(handler)

    return logger
