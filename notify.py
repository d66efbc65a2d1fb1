# notify.py
import logging
import os
import time
from typing import List, Optional

import requests

log = logging.getLogger(__name__)

TG_API = "https://api.telegram.org/bot{token}/{method}"
MAX_LEN = 4096  # Telegram text message limit


def _build_run_url() -> Optional[str]:
    """Link to the GitHub Actions run when executed there, else None."""
    repo = os.getenv("GITHUB_REPOSITORY")
    run_id = os.getenv("GITHUB_RUN_ID")
    server = os.getenv("GITHUB_SERVER_URL", "https://github.com")
    if repo and run_id:
        return f"{server}/{repo}/actions/runs/{run_id}"
    return None


def split_message(text: str, limit: int = MAX_LEN) -> List[str]:
    s = str(text or "")
    return [s[i:i + limit] for i in range(0, len(s), limit)] or [""]


def _post_json(url: str, payload: dict, tries: int = 3, timeout: int = 15, backoff: float = 2) -> bool:
    """Retries network errors / non-200 / ok=false with exponential backoff."""
    for attempt in range(tries):
        try:
            resp = requests.post(url, json=payload, timeout=timeout)
            if resp.status_code == 200:
                data = resp.json()
                if data.get("ok"):
                    return True
                log.warning(f"[TELEGRAM_WARN] api ok=false: {data}")
            else:
                log.warning(f"[TELEGRAM_WARN] http {resp.status_code}: {resp.text[:200]}")
        except (requests.RequestException, ValueError) as e:
            log.warning(f"[TELEGRAM_WARN] request error: {e}")

        if attempt < tries - 1:
            time.sleep(backoff)
            backoff *= 2
    return False


def notify(text: str, settings, disable_preview: bool = True) -> bool:
    """
    Sends text to the configured Telegram chat.
    Not configured -> True without sending, so the sync never depends on it.
    False means a send was attempted and failed.
    """
    token = settings.telegram_bot_token
    chat_id = settings.telegram_chat_id
    if not token or not chat_id:
        log.debug("[TELEGRAM_DISABLED] no token or chat_id, skip sending")
        return True

    run_url = _build_run_url()
    if run_url:
        text = f"{text}\n\n🔗 {run_url}"

    url = TG_API.format(token=token, method="sendMessage")
    ok_all = True
    for part in split_message(text):
        payload = {"chat_id": chat_id, "text": part, "disable_web_page_preview": disable_preview}
        ok_all = _post_json(url, payload) and ok_all
    return ok_all
