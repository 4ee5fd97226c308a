# rental_auth/core/logging.py
import inspect
import logging
import sys

from loguru import logger

from rental_auth.core.config import settings


class InterceptHandler(logging.Handler):
    """Encaminha registros do logging padrão (uvicorn, sqlalchemy) para o loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging() -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.LOG_LEVEL,
        serialize=settings.LOG_JSON,
        backtrace=False,
        diagnose=False,  # diagnose would print local variables (passwords, tokens)
    )
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "sqlalchemy.engine"):
        logging.getLogger(name).handlers = [InterceptHandler()]
        logging.getLogger(name).propagate = False
    # SQL só aparece com echo=True na engine
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
