# httputil/core/config.py

from dotenv import load_dotenv
import os

load_dotenv()

DEFAULT_TIMEOUT = 10.0


def get_base_url() -> str:
    """Préfixe d'URL du client par défaut (vide = URL absolues)."""
    return os.getenv("HTTPUTIL_BASE_URL", "")


def get_timeout() -> float:
    """Timeout (secondes) du transport httpx du client par défaut."""
    raw = os.getenv("HTTPUTIL_TIMEOUT")
    if raw is None or raw.strip() == "":
        return DEFAULT_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError:
        raise RuntimeError(f"HTTPUTIL_TIMEOUT invalide : {raw!r} (nombre de secondes attendu).")
    if timeout < 0:
        raise RuntimeError(f"HTTPUTIL_TIMEOUT invalide : {raw!r} (doit être positif).")
    return timeout


def get_log_level() -> str:
    """Niveau de log de la bibliothèque (HTTPUTIL_LOG_LEVEL, sinon LOG_LEVEL, sinon INFO)."""
    return (os.getenv("HTTPUTIL_LOG_LEVEL") or os.getenv("LOG_LEVEL") or "INFO").upper()
