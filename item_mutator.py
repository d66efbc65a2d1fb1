# item_mutator.py
"""
Find one catalog item on the panel and converge it to a Decision.

Steps per item:
  1. type the name into the search box, if the page has one
  2. wait for a card (article / list item / row) containing the name  -> ItemNotFound
  3. availability control: surfaces.switch, then surfaces.icon         -> ControlNotFound
  4. stock field via surfaces.stock_input; missing field is fine
"""

import logging
import re
import time
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from decision import Decision
from errors import ControlNotFound, ItemNotFound
from surfaces import icon, stock_input, switch

log = logging.getLogger(__name__)

SEARCH_PLACEHOLDER_RE = re.compile(r"buscar|pesquisar|search", re.I)
CONTAINER_ROLES = ("article", "listitem", "row")
AVAILABILITY_STRATEGIES = (switch, icon)

SEARCH_SETTLE_MS = 1200
TOGGLE_SETTLE_MS = 500
CARD_POLL_MS = 250


@dataclass(frozen=True)
class MutationResult:
    availability_changed: bool
    quantity_changed: bool


def search_item(page, name: str) -> bool:
    """Free-text search; False when the page has no usable search box."""
    box = page.get_by_placeholder(SEARCH_PLACEHOLDER_RE).first
    try:
        if box.count() == 0:
            log.debug(f"[ITEM] no search box, scanning the page for {name}")
            return False
        box.fill("")
        box.fill(name)
        box.press("Enter")
    except PlaywrightError as e:
        log.debug(f"[ITEM] search box unusable ({e}), scanning the page for {name}")
        return False
    page.wait_for_timeout(SEARCH_SETTLE_MS)
    return True


def innermost_cards(page, name: str) -> List[object]:
    """
    One locator per container role, in priority order. A card that holds
    another matching card (a category wrapping its products) is excluded,
    so only the innermost card carrying the name is left.
    """
    pattern = re.compile(re.escape(name), re.I)
    matches = [page.get_by_role(role).filter(has_text=pattern) for role in CONTAINER_ROLES]
    nested = matches[0]
    for m in matches[1:]:
        nested = nested.or_(m)
    return [m.filter(has_not=nested).first for m in matches]


def find_item_container(page, name: str, timeout_ms: int):
    cards = innermost_cards(page, name)
    deadline = time.monotonic() + timeout_ms / 1000
    while True:
        for card in cards:
            if card.count() == 0:
                continue
            remaining = max(1, int((deadline - time.monotonic()) * 1000))
            try:
                card.wait_for(state="visible", timeout=remaining)
            except PlaywrightTimeoutError:
                break
            return card
        if time.monotonic() >= deadline:
            raise ItemNotFound(name, f"Item card not found: {name}")
        page.wait_for_timeout(CARD_POLL_MS)


def probe_availability(container, name: str, timeout_ms: int,
                       strategies: Sequence = AVAILABILITY_STRATEGIES) -> Tuple[object, object]:
    for strategy in strategies:
        control = strategy.probe(container, timeout_ms)
        if control is not None:
            log.debug(f"[ITEM] {name}: availability via {strategy.NAME}")
            return strategy, control
    raise ControlNotFound(name, f"Availability toggle not found: {name}")


def apply_decision(page, decision: Decision, timeout_ms: int = 8000,
                   availability_strategies: Sequence = AVAILABILITY_STRATEGIES,
                   quantity_strategy=stock_input) -> MutationResult:
    name = decision.display_name
    search_item(page, name)
    container = find_item_container(page, name, timeout_ms)

    # availability (required)
    strategy, control = probe_availability(container, name, timeout_ms, availability_strategies)
    current = strategy.read_state(control)
    availability_changed = current != decision.should_be_available
    if availability_changed:
        strategy.set_state(control, decision.should_be_available)
        page.wait_for_timeout(TOGGLE_SETTLE_MS)
        log.info(f"[ITEM] availability updated -> {name}: {decision.should_be_available}")
    else:
        log.info(f"[ITEM] availability already correct -> {name}: {decision.should_be_available}")

    # stock (optional)
    quantity_changed = False
    try:
        field = quantity_strategy.probe(container, timeout_ms)
        if field is None:
            log.debug(f"[ITEM] {name}: no stock field on this card")
        else:
            quantity_changed = quantity_strategy.set_quantity(
                container, field, decision.target_quantity, timeout_ms
            )
            if quantity_changed:
                log.info(f"[ITEM] stock updated -> {name}: {decision.target_quantity}")
    except PlaywrightError as e:
        quantity_changed = False
        log.warning(f"[ITEM] {name}: stock field not editable, skipped ({e})")

    return MutationResult(availability_changed=availability_changed, quantity_changed=quantity_changed)
