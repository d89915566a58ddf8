# app/utils/logger.py
"""
Единая настройка логирования: консоль + ротируемый файл в LOG_DIR.
В каждом модуле: logger = get_logger(__name__)
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from app.config import settings

_configured = False


def _configure_root_logger():
    global _configured
    if _configured:
        return
    _configured = True

    level = settings.LOG_LEVEL.upper()
    fmt = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(fmt)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(console)

    # файл: 10 × 5MB
    if settings.LOG_DIR:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=os.path.join(settings.LOG_DIR, "trucky.log"),
            maxBytes=5 * 1024 * 1024,
            backupCount=10,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Именованный логгер; корневой настраивается при первом вызове."""
    _configure_root_logger()
    return logging.getLogger(name)
