"""
recon_engines.conversion -- document unit to stock unit conversion lookup.

Responsibility:
    Find the factor that converts an entry line's document unit into the
    item's stock unit, from the unit conversions registered by the ledger.

Matching order for (cod_item, document unit):
    1. Case-insensitive match on the trimmed unit ("cx" == "CX").
    2. Whitespace-insensitive match ("CX 12" == "CX12").
    3. The item has exactly one registered conversion: use it.
    Matching is attempted only when the document unit is non-empty.

Invariants enforced:
    - A factor of zero or None never zeroes a quantity: it counts as 1.
    - Pure: no I/O, no clock.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from recon_kernel.domain.dtos import UnitConversionRecord

ONE = Decimal("1")

_WHITESPACE = re.compile(r"\s+")


class MatchMethod(str, Enum):
    CASE_INSENSITIVE = "case_insensitive"
    WHITESPACE_INSENSITIVE = "whitespace_insensitive"
    SINGLE_UNIT = "single_unit"


@dataclass(frozen=True)
class ConversionMatch:
    unit: str
    factor: Decimal | None
    method: MatchMethod

    @property
    def effective_factor(self) -> Decimal:
        """The factor to multiply by; zero or missing counts as 1."""
        if self.factor is None or self.factor == 0:
            return ONE
        return self.factor


def _fold(unit: str) -> str:
    return unit.strip().upper()


def _squash(unit: str) -> str:
    return _WHITESPACE.sub("", unit).upper()


class ConversionTable:
    """Unit conversions of one ledger batch, grouped by item code."""

    def __init__(self, conversions: Iterable[UnitConversionRecord]):
        self._by_item: dict[str, list[UnitConversionRecord]] = {}
        for conv in conversions:
            self._by_item.setdefault(conv.cod_item, []).append(conv)

    def __len__(self) -> int:
        return sum(len(v) for v in self._by_item.values())

    def lookup(self, cod_item: str, document_unit: str | None) -> ConversionMatch | None:
        unit = (document_unit or "").strip()
        candidates = self._by_item.get(cod_item)
        if not unit or not candidates:
            return None

        folded = _fold(unit)
        for conv in candidates:
            if _fold(conv.unit) == folded:
                return ConversionMatch(conv.unit, conv.factor, MatchMethod.CASE_INSENSITIVE)

        squashed = _squash(unit)
        for conv in candidates:
            if _squash(conv.unit) == squashed:
                return ConversionMatch(
                    conv.unit, conv.factor, MatchMethod.WHITESPACE_INSENSITIVE
                )

        if len(candidates) == 1:
            conv = candidates[0]
            return ConversionMatch(conv.unit, conv.factor, MatchMethod.SINGLE_UNIT)

        return None

    def convert(self, cod_item: str, document_unit: str | None, quantity: Decimal) -> Decimal:
        """``quantity`` expressed in stock units."""
        match = self.lookup(cod_item, document_unit)
        if match is None:
            return quantity
        return quantity * match.effective_factor
