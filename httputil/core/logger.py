# httputil/core/logger.py
import logging

from httputil.core.config import get_log_level

ROOT_LOGGER_NAME = "httputil"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _configure_root() -> logging.Logger:
    """Installe un unique handler sur le logger racine 'httputil' (une seule fois)."""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(handler)
        root.setLevel(get_log_level())
        root.debug(f"Logger '{ROOT_LOGGER_NAME}' initialized with level={root.level}")
    return root


def get_logger(name: str) -> logging.Logger:
    """
    Logger standardisé de la bibliothèque.

    Les modules du paquet ('httputil.xxx') héritent du handler et du niveau
    du logger racine ; le niveau vient de HTTPUTIL_LOG_LEVEL ou LOG_LEVEL.
    """
    _configure_root()
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
