# surfaces/common.py
from typing import Iterable, Optional

from playwright.sync_api import TimeoutError as PlaywrightTimeoutError


def first_visible(candidates: Iterable, timeout_ms: int) -> Optional[object]:
    """
    First locator (already narrowed with .first) that becomes visible within
    timeout_ms. Candidates that match nothing are skipped without waiting.
    """
    for loc in candidates:
        try:
            if loc.count() == 0:
                continue
            loc.wait_for(state="visible", timeout=timeout_ms)
            return loc
        except PlaywrightTimeoutError:
            continue
    return None
