import math

import pytest

from normalizer import CanonicalItem, Columns, is_total_row, normalize, to_quantity


def _row(name, qty, status):
    return {"Nome": name, "Estoque": qty, "Status Venda": status}


def test_normalize_basic_row():
    items = normalize([_row("  Coxinha ", 12, " Ativo ")])
    assert items == [CanonicalItem(name="Coxinha", stock_quantity=12, status_text="ativo")]


def test_total_row_is_dropped():
    items = normalize([_row("Total Itens=40", 5, "ativo"), _row("Pizza", 1, "ativo")])
    assert [it.name for it in items] == ["Pizza"]


@pytest.mark.parametrize("name", ["", "   ", None, float("nan")])
def test_empty_name_is_dropped(name):
    assert normalize([_row(name, 3, "ativo")]) == []


@pytest.mark.parametrize("qty", ["abc", "", None, float("nan"), "dez", math.inf])
def test_bad_quantity_becomes_zero_and_row_is_kept(qty):
    items = normalize([_row("Pastel", qty, "ativo")])
    assert len(items) == 1
    assert items[0].stock_quantity == 0


@pytest.mark.parametrize("raw, expected", [
    (7, 7),
    (7.9, 7),
    ("7", 7),
    ("7,5", 7),
    (" 12 ", 12),
    (-3, 0),
    ("-2.5", 0),
])
def test_to_quantity(raw, expected):
    assert to_quantity(raw) == expected


def test_order_is_preserved_and_custom_columns():
    cols = Columns(name="Produto", quantity="Qtd", status="Situacao")
    rows = [
        {"Produto": "B", "Qtd": 1, "Situacao": "ON"},
        {"Produto": "A", "Qtd": 2, "Situacao": "off"},
    ]
    items = normalize(rows, cols)
    assert [it.name for it in items] == ["B", "A"]
    assert items[0].status_text == "on"


def test_missing_status_column_gives_empty_status():
    items = normalize([{"Nome": "Kibe", "Estoque": 2}])
    assert items[0].status_text == ""


def test_is_total_row_variants():
    assert is_total_row("TOTAL ITENS = 3")
    assert is_total_row("total itens=0")
    assert not is_total_row("Total de refrigerantes")
