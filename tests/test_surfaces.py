import pytest

from fakes import FakeGroup, FakeLocator, FakePage, missing
from surfaces import icon, stock_input, switch


# ---------- switch ----------

def test_switch_probe_and_toggle():
    toggle = FakeLocator(checked=True)
    card = FakeLocator(children={"switch": toggle})
    control = switch.probe(card, 100)
    assert control is toggle
    assert switch.read_state(control) is True
    switch.set_state(control, False)
    assert toggle.clicks == 1
    switch.set_state(control, False)
    assert toggle.clicks == 1


def test_switch_probe_absent():
    assert switch.probe(FakeLocator(), 100) is None


def test_switch_probe_present_but_hidden():
    card = FakeLocator(children={"switch": FakeLocator(visible=False)})
    assert switch.probe(card, 100) is None


# ---------- icon ----------

@pytest.mark.parametrize("hint, expected", [
    ("Pausar item", True),
    ('<svg data-testid="PauseCircleIcon"></svg>', True),
    ("pause-circle", True),
    ("Desativar", True),
    ("Ativar item", False),
    ('<svg data-testid="PlayArrowIcon"></svg>', False),
    ("Retomar vendas", False),
    ("Editar", None),
    ("display", None),
    ("play / pause", None),
])
def test_state_from_hint(hint, expected):
    assert icon.state_from_hint(hint) is expected


def test_icon_probe_skips_unrelated_buttons():
    edit = FakeLocator(attrs={"aria-label": "Editar"})
    pause = FakeLocator(attrs={"aria-label": "Pausar"})
    card = FakeLocator(children={"button": FakeGroup([edit, pause])})
    control = icon.probe(card, 100)
    assert control is pause
    assert icon.read_state(control) is True
    icon.set_state(control, False)
    assert pause.clicks == 1
    assert edit.clicks == 0


def test_icon_probe_nothing_recognisable():
    card = FakeLocator(children={"button": FakeGroup([FakeLocator(html="<svg/>")])})
    assert icon.probe(card, 100) is None


# ---------- stock input ----------

def _stock_card(value="3", save=None):
    page = FakePage()
    field = FakeLocator(value=value, page=page)
    children = {"placeholder": field}
    if save is not None:
        children["button"] = save
    return FakeLocator(children=children), field, page


def test_stock_input_commit_with_tab_when_no_save_button():
    card, field, _ = _stock_card()
    control = stock_input.probe(card, 100)
    assert control is field
    assert stock_input.set_quantity(card, control, 10, 100) is True
    assert field.value == "10"
    assert field.pressed == ["Tab"]


def test_stock_input_commit_with_save_button():
    save = FakeLocator()
    card, field, _ = _stock_card(save=save)
    assert stock_input.set_quantity(card, field, 0, 100) is True
    assert save.clicks == 1
    assert field.pressed == []


def test_stock_input_unchanged_value_is_noop():
    card, field, _ = _stock_card(value="7")
    assert stock_input.set_quantity(card, field, 7, 100) is False
    assert field.fills == []


def test_stock_input_absent():
    assert stock_input.probe(FakeLocator(children={"css": missing()}), 100) is None
