# rpcnaming/config/default.py
import os

from dotenv import load_dotenv

load_dotenv()


def _split_urls(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(u.strip().rstrip("/") for u in value.split(",") if u.strip())


# ──────────────────────────────────────────────────────────────
# Naming node
# ──────────────────────────────────────────────────────────────
NODE_ID: str = os.getenv("NAMING_NODE_ID", "root")
NODE_HOST: str = os.getenv("NAMING_HOST", "127.0.0.1")
NODE_PORT: int = int(os.getenv("NAMING_PORT", "5000"))
DELEGATES: tuple[str, ...] = _split_urls(os.getenv("NAMING_DELEGATES"))
DELEGATION_TIMEOUT: float = float(os.getenv("NAMING_DELEGATION_TIMEOUT", "2.0"))
DELIMITER: str = os.getenv("NAMING_DELIMITER", ".")
MAX_DEPTH: int = int(os.getenv("NAMING_MAX_DEPTH", "8"))

# ──────────────────────────────────────────────────────────────
# Services
# ──────────────────────────────────────────────────────────────
NAMING_URLS: tuple[str, ...] = _split_urls(
    os.getenv("NAMING_URLS", "http://127.0.0.1:5000")
)
SERVICE_HOST: str = os.getenv("SERVICE_HOST", "127.0.0.1")
SERVICE_PORT: int = int(os.getenv("SERVICE_PORT", "6001"))
INVOKE_TIMEOUT: float = float(os.getenv("INVOKE_TIMEOUT", "10.0"))

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
