import copy
import logging

from uvicorn.config import LOGGING_CONFIG

from shared.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def uvicorn_log_config() -> dict:
    """uvicorn's default dictConfig with the app's format, for uvicorn.run(log_config=...)."""
    config = copy.deepcopy(LOGGING_CONFIG)
    config["formatters"]["default"]["fmt"] = LOG_FORMAT
    config["formatters"]["default"]["datefmt"] = LOG_DATE_FORMAT
    config["formatters"]["access"]["datefmt"] = LOG_DATE_FORMAT
    config["loggers"]["uvicorn"]["level"] = settings.LOG_LEVEL.upper()
    return config


def configure_logging():
    """Format the application's own loggers the same way as uvicorn's."""
    logging.basicConfig(
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    )
