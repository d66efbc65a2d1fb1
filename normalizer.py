# normalizer.py
"""
Spreadsheet rows -> CanonicalItem.

Noise in the sheet degrades instead of failing: a bad quantity becomes 0,
only rows without a name or the "Total Itens=N" footer are dropped.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping

# footer line exported by the POS, e.g. "Total Itens=40"
TOTAL_ROW_RE = re.compile(r"^total\s*itens\s*=\s*\d+", re.I)


@dataclass(frozen=True)
class Columns:
    name: str = "Nome"
    quantity: str = "Estoque"
    status: str = "Status Venda"


@dataclass(frozen=True)
class CanonicalItem:
    name: str
    stock_quantity: int
    status_text: str


def _cell_text(value: Any) -> str:
    """None / NaN -> ''; everything else str() and stripped."""
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


def to_quantity(value: Any) -> int:
    """
    Coerce a stock cell to an int >= 0. Never raises:
      12 / 12.9 / "12" / "12,9" -> 12 ; -3 -> 0 ; "", "abc", NaN, inf -> 0
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        n = float(value)
    else:
        s = _cell_text(value).replace(" ", "")
        if not s:
            return 0
        if "," in s and "." not in s:
            s = s.replace(",", ".")
        try:
            n = float(s)
        except ValueError:
            return 0
    if math.isnan(n) or math.isinf(n):
        return 0
    return max(0, math.floor(n))


def is_total_row(name: str) -> bool:
    return bool(TOTAL_ROW_RE.match(name or ""))


def normalize(rows: Iterable[Mapping[str, Any]], columns: Columns = Columns()) -> List[CanonicalItem]:
    out: List[CanonicalItem] = []
    for row in rows:
        name = _cell_text(row.get(columns.name))
        if not name or is_total_row(name):
            continue
        out.append(CanonicalItem(
            name=name,
            stock_quantity=to_quantity(row.get(columns.quantity)),
            status_text=_cell_text(row.get(columns.status)).lower(),
        ))
    return out
