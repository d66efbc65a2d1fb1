# surfaces/switch.py
"""
Availability through an explicit on/off control: role=switch
(aria-checked), or a checkbox styled as a toggle.
"""

from surfaces.common import first_visible

NAME = "switch"


def probe(container, timeout_ms: int):
    return first_visible(
        [
            container.get_by_role("switch").first,
            container.locator("input[type=checkbox][role=switch], [data-testid*=toggle i] input[type=checkbox]").first,
        ],
        timeout_ms,
    )


def read_state(control) -> bool:
    return bool(control.is_checked())


def set_state(control, desired: bool) -> None:
    # click instead of check()/uncheck(): custom switches often hide the real input
    if read_state(control) != desired:
        control.click()


__all__ = ["NAME", "probe", "read_state", "set_state"]
