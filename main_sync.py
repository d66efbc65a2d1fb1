# main_sync.py
# Drive spreadsheet -> merchant panel (browser automation)
#   python main_sync.py --dry-run   only log what would change
#   python main_sync.py --login     only refresh the browser session
#   python main_sync.py --loop      sync every LOOP_INTERVAL seconds until Ctrl+C
#   python main_sync.py             sync (default)
#
# Exit code 1 on configuration / source / catalog errors; item failures are
# counted and reported, they don't change the exit code.

import argparse
import logging
import os
import re
import sys
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from playwright.sync_api import Error as PlaywrightError

from config import load_settings
from decision import Decision, decide, load_name_map
from drive_reader import build_drive_service, fetch_latest_document, load_google_credentials, read_rows
from errors import SyncError, SyncItemError
from item_mutator import apply_decision
from normalizer import CanonicalItem, normalize
from notify import notify
from session import STRATEGY_PROFILE, goto_catalog, interactive_login, open_session, session_strategy

log = logging.getLogger(__name__)

MODE_PREVIEW = "preview"
MODE_LOGIN = "login"
MODE_APPLY = "apply"
MODE_LOOP = "loop"

LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s"


@dataclass
class RunSummary:
    ok_count: int = 0
    fail_count: int = 0
    failed: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.ok_count + self.fail_count

    def line(self) -> str:
        return f"OK={self.ok_count} FAIL={self.fail_count}"


# -------------------- helpers --------------------

def sanitize_name(name: str) -> str:
    """Display name -> safe file name fragment ("Pão de Queijo" -> "P_o_de_Queijo")."""
    s = re.sub(r"[^a-z0-9]+", "_", name or "", flags=re.I).strip("_")
    return s or "item"


def ensure_evidence_dir(settings) -> str:
    os.makedirs(settings.evidence_dir, exist_ok=True)
    return settings.evidence_dir


def save_snapshot(page, settings, display_name: str) -> Optional[str]:
    path = os.path.join(settings.evidence_dir, f"err-{sanitize_name(display_name)}.png")
    try:
        page.screenshot(path=path, full_page=True)
    except PlaywrightError as e:
        log.warning(f"[SYNC] screenshot failed for {display_name}: {e}")
        return None
    return path


def load_items(settings, drive=None) -> List[CanonicalItem]:
    """Drive -> evidence copy -> rows -> canonical items."""
    ensure_evidence_dir(settings)
    if drive is None:
        drive = build_drive_service(load_google_credentials(settings))

    log.info("[DRIVE] downloading latest spreadsheet...")
    data, meta = fetch_latest_document(settings.gdrive_folder_id, drive)
    name = meta.get("name") or "last.xlsx"
    ext = os.path.splitext(name)[1].lower() or ".xlsx"
    with open(os.path.join(settings.evidence_dir, f"last{ext}"), "wb") as fh:
        fh.write(data)

    rows = read_rows(data, name)
    log.info(f"[DRIVE] rows in sheet: {len(rows)}")
    if not rows:
        log.warning("[DRIVE] spreadsheet has no rows")
        return []

    items = normalize(rows, settings.columns)
    log.info(f"[DRIVE] items with a valid name: {len(items)}")
    return items


def build_decisions(items: Sequence[CanonicalItem], settings) -> List[Decision]:
    name_map = load_name_map(settings.map_file)
    if name_map:
        log.info(f"[SYNC] name map loaded: {len(name_map)} entries")
    return [decide(it, name_map, settings) for it in items]


# -------------------- modes --------------------

def run_preview(settings, drive=None) -> List[Decision]:
    items = load_items(settings, drive)
    decisions = build_decisions(items, settings)
    for it, d in zip(items, decisions):
        log.info(
            f"[DRY] {d.display_name} -> available={d.should_be_available} "
            f"| stock={d.target_quantity} | status=\"{it.status_text}\""
        )
    return decisions


def run_login(settings, store=None, confirm: Callable = input) -> None:
    if session_strategy(settings) == STRATEGY_PROFILE:
        with open_session(settings) as handle:
            goto_catalog(handle, settings)
            log.info("[SESSION] persistent profile is logged in; nothing to save")
        return
    interactive_login(settings, store=store, confirm=confirm)


def apply_all(page, decisions: Sequence[Decision], settings,
              apply: Optional[Callable] = None) -> RunSummary:
    """One item at a time, in sheet order; a failing item never stops the loop."""
    apply = apply or apply_decision
    summary = RunSummary()
    for d in decisions:
        try:
            apply(page, d, settings.element_timeout_ms)
        except (SyncItemError, PlaywrightError) as e:
            summary.fail_count += 1
            summary.failed.append(d.display_name)
            log.warning(f"[SYNC] failed to update {d.display_name}: {e}")
            save_snapshot(page, settings, d.display_name)
            continue
        summary.ok_count += 1
    return summary


def run_apply(settings, drive=None, store=None) -> RunSummary:
    items = load_items(settings, drive)
    decisions = build_decisions(items, settings)
    if not decisions:
        log.warning("[SYNC] nothing to sync")
        return RunSummary()

    with open_session(settings, store=store) as handle:
        page = goto_catalog(handle, settings)
        summary = apply_all(page, decisions, settings)

    log.info(f"[SYNC] summary: {summary.line()}")
    text = f"[SYNC] panel sync finished: {summary.line()}"
    if summary.failed:
        text += "\nFailed: " + ", ".join(summary.failed)
    notify(text, settings)
    return summary


def run_once(settings, mode: str = MODE_APPLY, **kwargs):
    if mode == MODE_PREVIEW:
        return run_preview(settings, drive=kwargs.get("drive"))
    if mode == MODE_LOGIN:
        return run_login(settings, store=kwargs.get("store"))
    if mode == MODE_APPLY:
        return run_apply(settings, drive=kwargs.get("drive"), store=kwargs.get("store"))
    raise ValueError(f"Unknown mode: {mode}")


def run_loop(settings, iterations: Optional[int] = None, sleep: Callable = time.sleep, **kwargs) -> int:
    """
    Apply, then wait settings.loop_interval seconds, forever (or `iterations`
    times). A failed run is logged and notified; the next one still happens.
    Returns the number of failed runs. KeyboardInterrupt is not caught here.
    """
    failures = 0
    n = 0
    while iterations is None or n < iterations:
        n += 1
        try:
            run_apply(settings, drive=kwargs.get("drive"), store=kwargs.get("store"))
        except Exception as e:
            failures += 1
            log.exception(f"[LOOP] run {n} failed, retrying in {settings.loop_interval}s")
            notify(f"❌ [SYNC] run aborted: {type(e).__name__}: {e}", settings)
        if iterations is None or n < iterations:
            sleep(settings.loop_interval)
    return failures


# -------------------- CLI --------------------

def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Sync stock/availability from a Drive spreadsheet to the merchant panel.")
    group = ap.add_mutually_exclusive_group()
    group.add_argument("--dry-run", dest="mode", action="store_const", const=MODE_PREVIEW,
                       help="only log the decisions, touch nothing")
    group.add_argument("--login", dest="mode", action="store_const", const=MODE_LOGIN,
                       help="only open/refresh the browser session")
    group.add_argument("--loop", dest="mode", action="store_const", const=MODE_LOOP,
                       help="sync every LOOP_INTERVAL seconds until interrupted")
    ap.add_argument("-v", "--verbose", action="store_true")
    ap.set_defaults(mode=MODE_APPLY)
    return ap.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format=LOG_FORMAT)

    settings = None
    try:
        settings = load_settings()
        if args.mode == MODE_LOOP:
            run_loop(settings)
        else:
            run_once(settings, args.mode)
    except KeyboardInterrupt:
        log.error("interrupted")
        return 130
    except SyncError as e:
        log.error(f"{type(e).__name__}: {e}")
        if settings is not None:
            notify(f"❌ [SYNC] run aborted: {type(e).__name__}: {e}", settings)
        return 1
    except Exception:
        log.exception("unexpected failure")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
