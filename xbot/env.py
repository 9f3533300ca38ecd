from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import AnyHttpUrl, ValidationError

from .constants import DEFAULT_REDIRECT_URI, DEFAULT_SCOPES


def is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_csv_env(key: str) -> list[str]:
    raw = os.getenv(key, "")
    if not raw.strip():
        return []
    items: list[str] = []
    for item in raw.split(","):
        item = item.strip()
        if item and item not in items:
            items.append(item)
    return items


def get_env_int(key: str, default: int) -> int:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{key} must be an integer value.")


def get_env_float(key: str, default: float) -> float:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{key} must be a number.")


def get_scopes() -> list[str]:
    return os.getenv("X_OAUTH2_SCOPES", DEFAULT_SCOPES).split()


def get_redirect_uri() -> str:
    return os.getenv("X_OAUTH2_REDIRECT_URI", "").strip() or DEFAULT_REDIRECT_URI


def load_env() -> None:
    env_path = Path(__file__).resolve().parent.parent / ".env"
    if not env_path.exists():
        return
    load_dotenv(env_path, override=True)


def validate_env() -> None:
    required = (
        "X_OAUTH2_CLIENT_ID",
        "X_OAUTH2_CLIENT_SECRET",
    )
    missing = [key for key in required if not os.getenv(key, "").strip()]
    if missing:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")

    redirect_uri = get_redirect_uri()
    try:
        AnyHttpUrl(redirect_uri)
    except ValidationError as error:
        raise RuntimeError(
            "X_OAUTH2_REDIRECT_URI must be a valid http(s) URL registered with the X app "
            "(for example: http://127.0.0.1:3000/callback)."
        ) from error

    if "offline.access" not in get_scopes():
        raise RuntimeError("X_OAUTH2_SCOPES must include offline.access.")


def setup_logging() -> bool:
    debug_enabled = is_truthy(os.getenv("X_API_DEBUG", "1"))
    if debug_enabled:
        logging.basicConfig(level=logging.INFO)
        logging.getLogger("xbot").setLevel(logging.INFO)
    return debug_enabled
