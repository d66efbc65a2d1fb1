# surfaces/stock_input.py
"""
Per-item stock field. Many catalog layouts don't have one; probe() then
returns None and the caller simply skips the quantity step.
"""

import re

from surfaces.common import first_visible

NAME = "stock_input"

STOCK_PLACEHOLDER_RE = re.compile(r"estoque|quantidade dispon[ií]vel|stock", re.I)
SAVE_BUTTON_RE = re.compile(r"salvar|save|aplicar", re.I)


def probe(container, timeout_ms: int):
    return first_visible(
        [
            container.get_by_placeholder(STOCK_PLACEHOLDER_RE).first,
            container.locator("input[type=number], input[role=spinbutton]").first,
        ],
        timeout_ms,
    )


def set_quantity(container, control, quantity: int, timeout_ms: int) -> bool:
    """Writes quantity and commits it. Returns False when the field already shows it."""
    value = str(max(0, int(quantity)))
    if (control.input_value() or "").strip() == value:
        return False

    control.fill("")
    control.press_sequentially(value)

    save = first_visible([container.get_by_role("button", name=SAVE_BUTTON_RE).first], timeout_ms)
    if save is not None:
        save.click()
        control.page.wait_for_timeout(600)
    else:
        # no save button: the panel commits on blur
        control.press("Tab")
        control.page.wait_for_timeout(300)
    return True


__all__ = ["NAME", "probe", "set_quantity"]
