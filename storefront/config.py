import os
from dataclasses import dataclass, replace
from pathlib import Path
import json
from typing import Dict, List, Optional

from dotenv import load_dotenv


@dataclass
class AppConfig:
    database_url: str
    secret_key: str
    log_level: str
    currency: str
    admin_username: str
    admin_password: str
    order_group_window_seconds: int = 60


ALLOWED_HOT_KEYS = {"CURRENCY", "ORDER_GROUP_WINDOW_SECONDS"}
SENSITIVE_KEYS = {"DATABASE_URL", "SECRET_KEY", "ADMIN_USERNAME", "ADMIN_PASSWORD"}

DEFAULT_SETTINGS_PATH = Path(__file__).resolve().parents[1] / "data" / "settings.json"


def validate_currency(value: Optional[str]) -> str:
    v = (value or "NPR").strip().upper()
    if len(v) != 3 or not v.isalpha():
        raise ValueError("Invalid currency code: expected ISO4217 length 3")
    return v


def validate_window(value) -> int:
    try:
        seconds = int(value)
    except (TypeError, ValueError):
        raise ValueError("ORDER_GROUP_WINDOW_SECONDS must be an integer")
    if seconds <= 0:
        raise ValueError("ORDER_GROUP_WINDOW_SECONDS must be > 0")
    return seconds


def _load_settings_file(path: Optional[Path] = None) -> dict:
    target = path or DEFAULT_SETTINGS_PATH
    if not target.exists():
        return {}
    try:
        data = json.loads(target.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def load_env(settings_path: Optional[Path] = None) -> AppConfig:
    # data/settings.json wins for non-secret keys, .env / environment is the fallback
    load_dotenv()
    s = _load_settings_file(settings_path)
    return AppConfig(
        database_url=os.getenv("DATABASE_URL", "sqlite:///data/app.db"),
        secret_key=os.getenv("SECRET_KEY", "dev_secret"),
        log_level=(s.get("LOG_LEVEL") or os.getenv("LOG_LEVEL") or "INFO").upper(),
        currency=validate_currency(s.get("CURRENCY") or os.getenv("CURRENCY")),
        admin_username=os.getenv("ADMIN_USERNAME", "admin"),
        admin_password=os.getenv("ADMIN_PASSWORD", "admin"),
        order_group_window_seconds=validate_window(
            s.get("ORDER_GROUP_WINDOW_SECONDS") or os.getenv("ORDER_GROUP_WINDOW_SECONDS") or 60
        ),
    )


def refresh_non_sensitive(overrides: Dict[str, str], current: AppConfig) -> AppConfig:
    updates = {k: v for k, v in (overrides or {}).items() if k in ALLOWED_HOT_KEYS}
    return replace(
        current,
        currency=validate_currency(updates.get("CURRENCY", current.currency)),
        order_group_window_seconds=validate_window(
            updates.get("ORDER_GROUP_WINDOW_SECONDS", current.order_group_window_seconds)
        ),
    )


def requires_restart(changed_keys: List[str]) -> bool:
    if not changed_keys:
        return False
    return any(k in SENSITIVE_KEYS for k in changed_keys)
