# surfaces/icon.py
"""
Availability through a play/pause icon button.

The button shows the action it would perform:
  pause icon / "Pausar"  -> item is selling right now
  play icon  / "Ativar"  -> item is paused
The state is guessed from aria-label, title, data-testid and the icon markup.
"""

import re
import unicodedata
from typing import Optional

from playwright.sync_api import Error as PlaywrightError

NAME = "icon"

MAX_BUTTONS = 12
MAX_HTML = 2000

PAUSE_HINT_RE = re.compile(
    r"\b(pause|pausar|desativar)\b|pause(icon|circle|outlined|filled|[-_])", re.I
)
RESUME_HINT_RE = re.compile(
    r"\b(play|resume|retomar|ativar|reativar|despausar)\b|play(arrow|icon|circle|outlined|filled|[-_])", re.I
)


def _fold(s: str) -> str:
    s = unicodedata.normalize("NFKD", s or "")
    return "".join(ch for ch in s if not unicodedata.combining(ch)).lower()


def state_from_hint(hint: str) -> Optional[bool]:
    """True = currently available, False = paused, None = can't tell."""
    s = _fold(hint)
    pause = bool(PAUSE_HINT_RE.search(s))
    resume = bool(RESUME_HINT_RE.search(s))
    if pause == resume:
        return None
    return pause


def _hint(button) -> str:
    parts = []
    for attr in ("aria-label", "title", "data-testid"):
        try:
            parts.append(button.get_attribute(attr) or "")
        except PlaywrightError:
            pass
    try:
        parts.append((button.inner_html() or "")[:MAX_HTML])
    except PlaywrightError:
        pass
    return " ".join(parts)


def probe(container, timeout_ms: int):
    buttons = container.get_by_role("button")
    try:
        n = min(buttons.count(), MAX_BUTTONS)
    except PlaywrightError:
        return None
    for i in range(n):
        btn = buttons.nth(i)
        try:
            if not btn.is_visible():
                continue
        except PlaywrightError:
            continue
        if state_from_hint(_hint(btn)) is not None:
            return btn
    return None


def read_state(control) -> bool:
    state = state_from_hint(_hint(control))
    if state is None:
        raise PlaywrightError("play/pause icon no longer recognisable")
    return state


def set_state(control, desired: bool) -> None:
    if read_state(control) != desired:
        control.click()


__all__ = ["NAME", "probe", "read_state", "set_state", "state_from_hint"]
