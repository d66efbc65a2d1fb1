# config.py
"""
Runtime settings.

Everything comes from the environment (a local .env is loaded first) and is
frozen into a Settings value that is passed down explicitly; no module reads
os.environ on its own.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

from errors import ConfigError
from normalizer import Columns

_TRUE = ("1", "true", "yes", "on", "sim")
_FALSE = ("0", "false", "no", "off", "nao", "não")


def _is_blank(value) -> bool:
    if value is None:
        return True
    s = str(value).strip().lower()
    return s in ("", "nan", "none", "null")


def _get(env: Mapping[str, str], key: str, default: str = "") -> str:
    v = env.get(key)
    return default if _is_blank(v) else str(v).strip()


def _get_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if _is_blank(raw):
        return default
    s = str(raw).strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise ConfigError(f"{key} must be true/false, got {raw!r}")


def _get_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = _get(env, key)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from None
    if value < 0:
        raise ConfigError(f"{key} must be >= 0, got {value}")
    return value


def _split_urls(raw: str) -> Tuple[str, ...]:
    return tuple(u.strip() for u in raw.split(",") if u.strip())


@dataclass(frozen=True)
class Settings:
    # Google Drive
    gdrive_folder_id: str = ""
    google_auth_type: str = "service_account"  # service_account | oauth
    google_service_account_json: str = ""
    google_oauth_token_json: str = ""

    # merchant panel
    login_url: str = "https://portal.ifood.com.br/login"
    catalog_url: str = "https://portal.ifood.com.br/catalog"
    catalog_fallback_urls: Tuple[str, ...] = ("https://portal.ifood.com.br/menu",)
    catalog_url_pattern: str = r"/(catalog|menu|cardapio)"

    # spreadsheet columns
    col_product: str = "Nome"
    col_qty: str = "Estoque"
    col_status: str = "Status Venda"

    # rules
    stop_sell_at_zero: bool = True

    # output / inputs
    evidence_dir: str = "./evidence"
    map_file: str = "./map.json"

    # browser session
    session_strategy: str = ""  # profile | storage | "" (auto)
    chrome_user_data_dir: str = ""
    chrome_profile: str = ""
    chrome_channel: str = ""
    chrome_exe: str = ""
    storage_state_path: str = ""
    headless: bool = False

    # bounded waits
    nav_timeout_ms: int = 30000
    element_timeout_ms: int = 8000

    loop_interval: int = 600

    telegram_bot_token: str = field(default="", repr=False)
    telegram_chat_id: str = ""

    @property
    def columns(self) -> Columns:
        return Columns(name=self.col_product, quantity=self.col_qty, status=self.col_status)

    @property
    def catalog_candidates(self) -> Tuple[str, ...]:
        """Primary catalog URL first, then the fallbacks, without repeats."""
        seen = []
        for url in (self.catalog_url,) + tuple(self.catalog_fallback_urls):
            if url and url not in seen:
                seen.append(url)
        return tuple(seen)

    def with_overrides(self, **changes) -> "Settings":
        return replace(self, **changes)


def load_settings(environ: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> Settings:
    """Build Settings from the environment; .env is loaded unless told otherwise."""
    if environ is None:
        if dotenv:
            load_dotenv()
        environ = os.environ
    env = environ
    d = Settings()

    auth_type = _get(env, "GOOGLE_AUTH_TYPE", d.google_auth_type).lower()
    if auth_type not in ("service_account", "oauth"):
        raise ConfigError(f"GOOGLE_AUTH_TYPE must be service_account or oauth, got {auth_type!r}")

    strategy = _get(env, "SESSION_STRATEGY").lower()
    if strategy not in ("", "profile", "storage"):
        raise ConfigError(f"SESSION_STRATEGY must be profile or storage, got {strategy!r}")

    pattern = _get(env, "CATALOG_URL_PATTERN", d.catalog_url_pattern)
    try:
        re.compile(pattern)
    except re.error as e:
        raise ConfigError(f"CATALOG_URL_PATTERN is not a valid regex: {e}") from None

    fallbacks = env.get("CATALOG_FALLBACK_URLS")
    return Settings(
        gdrive_folder_id=_get(env, "GDRIVE_FOLDER_ID"),
        google_auth_type=auth_type,
        google_service_account_json=_get(env, "GOOGLE_SERVICE_ACCOUNT_JSON"),
        google_oauth_token_json=_get(env, "GOOGLE_OAUTH_TOKEN_JSON"),
        login_url=_get(env, "IFOOD_LOGIN_URL", d.login_url),
        catalog_url=_get(env, "IFOOD_CATALOG_URL", d.catalog_url),
        catalog_fallback_urls=d.catalog_fallback_urls if fallbacks is None else _split_urls(fallbacks),
        catalog_url_pattern=pattern,
        col_product=_get(env, "COL_PRODUCT", d.col_product),
        col_qty=_get(env, "COL_QTY", d.col_qty),
        col_status=_get(env, "COL_STATUS", d.col_status),
        stop_sell_at_zero=_get_bool(env, "STOP_SELL_AT_ZERO", d.stop_sell_at_zero),
        evidence_dir=_get(env, "EVIDENCE_DIR", d.evidence_dir),
        map_file=_get(env, "MAP_FILE", d.map_file),
        session_strategy=strategy,
        chrome_user_data_dir=_get(env, "CHROME_USER_DATA_DIR"),
        chrome_profile=_get(env, "CHROME_PROFILE"),
        chrome_channel=_get(env, "CHROME_CHANNEL"),
        chrome_exe=_get(env, "CHROME_EXE"),
        storage_state_path=_get(env, "STORAGE_STATE_PATH"),
        headless=_get_bool(env, "HEADLESS", d.headless),
        nav_timeout_ms=_get_int(env, "NAV_TIMEOUT_MS", d.nav_timeout_ms),
        element_timeout_ms=_get_int(env, "ELEMENT_TIMEOUT_MS", d.element_timeout_ms),
        loop_interval=_get_int(env, "LOOP_INTERVAL", d.loop_interval),
        telegram_bot_token=_get(env, "TELEGRAM_BOT_TOKEN"),
        telegram_chat_id=_get(env, "TELEGRAM_CHAT_ID"),
    )
