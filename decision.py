# decision.py
"""
Pure business rule: what the panel should show for one spreadsheet item.

    should_be_available = is_active(status) and (not stop_sell_at_zero or qty > 0)

No I/O here except load_name_map(), which the orchestrator calls once per run.
"""

from __future__ import annotations

import json
import math
import os
import unicodedata
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from errors import ConfigError
from normalizer import CanonicalItem

ACTIVE_WORDS = ("ativo", "ativado", "disponivel", "vendendo", "on")
# checked first: "inativo" also contains "ativo", "indisponivel" contains "disponivel"
INACTIVE_WORDS = ("inativo", "pausado", "off", "indisponivel")


@dataclass(frozen=True)
class Decision:
    display_name: str
    should_be_available: bool
    target_quantity: int


def _fold(text: str) -> str:
    """lowercase + strip accents ("Disponível" -> "disponivel")"""
    s = unicodedata.normalize("NFKD", str(text or ""))
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    return s.casefold()


def is_active(status_text: str) -> bool:
    s = _fold(status_text)
    if any(w in s for w in INACTIVE_WORDS):
        return False
    return any(w in s for w in ACTIVE_WORDS)


def target_quantity(quantity) -> int:
    try:
        n = float(quantity)
    except (TypeError, ValueError):
        return 0
    if math.isnan(n) or math.isinf(n):
        return 0
    return max(0, math.floor(n))


def decide(item: CanonicalItem, name_map: Optional[Mapping[str, str]], settings) -> Decision:
    """settings only needs a stop_sell_at_zero attribute."""
    qty = target_quantity(item.stock_quantity)
    available = is_active(item.status_text)
    if settings.stop_sell_at_zero:
        available = available and qty > 0
    display = (name_map or {}).get(item.name, item.name)
    return Decision(display_name=display, should_be_available=available, target_quantity=qty)


def load_name_map(path: str) -> Dict[str, str]:
    """
    Optional JSON object {"Nome na planilha": "Nome no painel"}.
    Missing file -> {}; anything that is not a flat string map -> ConfigError.
    """
    if not path or not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Cannot read name map {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Name map {path} must be a JSON object")
    bad = [k for k, v in data.items() if not isinstance(v, str) or not v.strip()]
    if bad:
        raise ConfigError(f"Name map {path} has empty or non-string values for: {bad[:5]}")
    return {str(k).strip(): v.strip() for k, v in data.items()}
