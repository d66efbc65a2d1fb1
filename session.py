# session.py
"""
Browser session for the merchant panel (Playwright, sync API).

Two ways to get an authenticated page, picked by configuration:
  - profile : launch_persistent_context on the operator's real Chrome/Edge
              profile; whatever login that profile holds is reused.
  - storage : isolated browser + saved storage_state (cookies/localStorage)
              created earlier by interactive_login().
"""

from __future__ import annotations

import json
import logging
import os
import re
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional, Tuple
from urllib.parse import urlparse

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from errors import CatalogUnreachable, ConfigError, NoSavedSession, ProfileNotConfigured

log = logging.getLogger(__name__)

STRATEGY_PROFILE = "profile"
STRATEGY_STORAGE = "storage"

LOCALE = "pt-BR"

# hides the most obvious automation markers from the panel's bot checks
STEALTH_JS = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
Object.defineProperty(navigator, 'languages', { get: () => ['pt-BR', 'pt', 'en-US', 'en'] });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3] });
window.chrome = window.chrome || { runtime: {} };
"""

_USER_DATA_RE = re.compile(r"^(.*[\\/]User Data)[\\/]([^\\/]+)[\\/]?$", re.I)


@dataclass
class SessionHandle:
    context: Any
    page: Any
    strategy: str
    browser: Any = None


class FileSessionStore:
    """storage_state JSON kept on disk; swap for any object with exists/load/save."""

    def __init__(self, path: str):
        if not path:
            raise ConfigError("STORAGE_STATE_PATH is not set")
        self.path = path

    def exists(self) -> bool:
        return os.path.isfile(self.path)

    def load(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Cannot read saved session {self.path}: {e}") from e

    def save(self, state: Dict[str, Any]) -> None:
        folder = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(folder, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump(state, fh, ensure_ascii=False, indent=2)


# ---------- configuration helpers ----------

def resolve_user_data_and_profile(user_data_dir: str, profile: str = "") -> Optional[Tuple[str, str]]:
    """
    Chrome wants the "User Data" root plus --profile-directory. People usually
    paste ".../User Data/Profile 1", so split that form apart.
    """
    if not user_data_dir:
        return None
    m = _USER_DATA_RE.match(user_data_dir.strip())
    if m and not profile:
        return m.group(1), m.group(2)
    return user_data_dir.strip(), profile or "Default"


def session_strategy(settings) -> str:
    if settings.session_strategy:
        return settings.session_strategy
    if settings.chrome_user_data_dir:
        return STRATEGY_PROFILE
    if settings.storage_state_path:
        return STRATEGY_STORAGE
    raise ConfigError(
        "No browser session configured: set CHROME_USER_DATA_DIR (real profile) "
        "or STORAGE_STATE_PATH (saved session)"
    )


def _default_store(settings, store):
    return store if store is not None else FileSessionStore(settings.storage_state_path)


# ---------- launch ----------

def _launch_profile(pw, settings) -> SessionHandle:
    resolved = resolve_user_data_and_profile(settings.chrome_user_data_dir, settings.chrome_profile)
    if not resolved:
        raise ProfileNotConfigured("Set CHROME_USER_DATA_DIR in .env to use your browser profile")
    user_data_dir, profile = resolved
    log.info(f"[SESSION] persistent profile {user_data_dir} ({profile})")

    context = pw.chromium.launch_persistent_context(
        user_data_dir,
        headless=False,
        channel=settings.chrome_channel or None,
        executable_path=settings.chrome_exe or None,
        ignore_default_args=["--enable-automation", "--no-sandbox"],
        args=[f"--profile-directory={profile}", "--start-maximized"],
        locale=LOCALE,
        no_viewport=True,
    )
    context.add_init_script(STEALTH_JS)
    page = context.pages[0] if context.pages else context.new_page()
    return SessionHandle(context=context, page=page, strategy=STRATEGY_PROFILE)


def _launch_storage(pw, settings, store) -> SessionHandle:
    if not store.exists():
        raise NoSavedSession("No saved session found. Run with --login first and finish the login in the browser.")
    state = store.load()
    browser = pw.chromium.launch(
        headless=settings.headless,
        channel=settings.chrome_channel or None,
        executable_path=settings.chrome_exe or None,
    )
    try:
        context = browser.new_context(storage_state=state, locale=LOCALE)
        context.add_init_script(STEALTH_JS)
        page = context.new_page()
    except BaseException:
        browser.close()
        raise
    log.info("[SESSION] restored saved session")
    return SessionHandle(context=context, page=page, strategy=STRATEGY_STORAGE, browser=browser)


def _close(handle: SessionHandle) -> None:
    try:
        handle.context.close()
    except PlaywrightError as e:
        log.warning(f"[SESSION] context close failed: {e}")
    if handle.browser is not None:
        try:
            handle.browser.close()
        except PlaywrightError as e:
            log.warning(f"[SESSION] browser close failed: {e}")


@contextmanager
def open_session(settings, store=None, playwright_factory: Callable = sync_playwright) -> Iterator[SessionHandle]:
    """Yields a SessionHandle; the browser is closed on every way out."""
    strategy = session_strategy(settings)
    with playwright_factory() as pw:
        if strategy == STRATEGY_PROFILE:
            handle = _launch_profile(pw, settings)
        else:
            handle = _launch_storage(pw, settings, _default_store(settings, store))
        try:
            handle.context.set_default_timeout(settings.element_timeout_ms)
            handle.context.set_default_navigation_timeout(settings.nav_timeout_ms)
            yield handle
        finally:
            _close(handle)
            log.info("[SESSION] closed")


def interactive_login(settings, store=None, confirm: Callable[[str], Any] = input,
                      playwright_factory: Callable = sync_playwright) -> Dict[str, Any]:
    """
    Opens the login page in a visible browser, waits for the operator to log in
    and press ENTER, then saves the resulting storage_state for later runs.
    """
    store = _default_store(settings, store)
    with playwright_factory() as pw:
        browser = pw.chromium.launch(
            headless=False,
            channel=settings.chrome_channel or None,
            executable_path=settings.chrome_exe or None,
        )
        try:
            previous = store.load() if store.exists() else None
            context = browser.new_context(storage_state=previous, locale=LOCALE)
            context.add_init_script(STEALTH_JS)
            page = context.new_page()
            log.info(f"[SESSION] opening login page {settings.login_url}")
            page.goto(settings.login_url, wait_until="domcontentloaded", timeout=settings.nav_timeout_ms)
            confirm("Log in to the panel in the opened browser, then press ENTER here... ")
            state = context.storage_state()
            store.save(state)
            log.info(f"[SESSION] session saved ({len(state.get('cookies', []))} cookies)")
            context.close()
            return state
        finally:
            browser.close()


# ---------- navigation ----------

def goto_catalog(handle: SessionHandle, settings):
    """
    Tries the configured catalog URL, then the fallbacks. An attempt counts
    only when the path of the final URL matches CATALOG_URL_PATTERN; the query
    string is ignored, so "/login?redirect=/catalog" is not a catalog page.
    """
    page = handle.page
    try:
        allow = re.compile(settings.catalog_url_pattern, re.I)
    except re.error as e:
        raise ConfigError(f"CATALOG_URL_PATTERN is not a valid regex: {e}") from None
    for url in settings.catalog_candidates:
        log.info(f"[SESSION] going to catalog: {url}")
        try:
            page.goto(url, wait_until="domcontentloaded", timeout=settings.nav_timeout_ms)
        except PlaywrightError as e:
            log.warning(f"[SESSION] navigation failed for {url}: {e}")
            continue
        if not allow.search(urlparse(page.url or "").path):
            log.warning(f"[SESSION] {url} ended on {page.url}, not a catalog page")
            continue
        try:
            page.wait_for_load_state("networkidle", timeout=settings.nav_timeout_ms)
        except PlaywrightTimeoutError:
            pass
        return page
    raise CatalogUnreachable(
        f"Catalog not reachable (tried {len(settings.catalog_candidates)} URL(s)); is the session logged in?"
    )
