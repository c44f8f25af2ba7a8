"""
recon_engines.descriptions -- description and unit resolution chain.

Responsibility:
    Pick the description and unit shown for an item code from the sources
    that know about it, in priority order:

        stock snapshot -> ledger product -> product catalog -> exit line
        -> placeholder

    Description and unit are resolved independently: the unit may come from
    a later source than the description.

Invariants enforced:
    - Blank strings never win; the next source is tried.
    - The placeholder always answers, so every row has both fields.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol

from recon_kernel.domain.dtos import ProductInfo

DEFAULT_MISSING_DESCRIPTION = "[no description]"
DEFAULT_UNIT = "UN"


class DescriptionSource(Protocol):
    """One link of the chain: what a source knows about a code, if anything."""

    name: str

    def lookup(self, cod_item: str) -> ProductInfo | None:
        ...


@dataclass(frozen=True)
class MappingSource:
    """A source backed by a code -> ProductInfo mapping."""

    name: str
    products: Mapping[str, ProductInfo]

    def lookup(self, cod_item: str) -> ProductInfo | None:
        return self.products.get(cod_item)


@dataclass(frozen=True)
class PlaceholderSource:
    name: str = "placeholder"
    description: str = DEFAULT_MISSING_DESCRIPTION
    unit: str = DEFAULT_UNIT

    def lookup(self, cod_item: str) -> ProductInfo | None:
        return ProductInfo(cod_item, self.description, self.unit)


def _present(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class DescriptionResolver:
    """Walks the source chain for a code."""

    def __init__(self, sources: Sequence[DescriptionSource]):
        self._sources = tuple(sources)

    @property
    def source_names(self) -> tuple[str, ...]:
        return tuple(s.name for s in self._sources)

    def resolve(self, cod_item: str) -> tuple[str, str]:
        """Return (description, unit) for ``cod_item``."""
        description: str | None = None
        unit: str | None = None
        for source in self._sources:
            info = source.lookup(cod_item)
            if info is None:
                continue
            description = description or _present(info.description)
            unit = unit or _present(info.unit)
            if description and unit:
                break
        return description or DEFAULT_MISSING_DESCRIPTION, unit or DEFAULT_UNIT


def build_default_chain(
    *,
    stock: Mapping[str, ProductInfo],
    ledger_products: Mapping[str, ProductInfo],
    catalog: Mapping[str, ProductInfo],
    exits: Mapping[str, ProductInfo],
    missing_description: str = DEFAULT_MISSING_DESCRIPTION,
    default_unit: str = DEFAULT_UNIT,
) -> DescriptionResolver:
    return DescriptionResolver([
        MappingSource("stock", stock),
        MappingSource("ledger_product", ledger_products),
        MappingSource("catalog", catalog),
        MappingSource("exit_line", exits),
        PlaceholderSource(description=missing_description, unit=default_unit),
    ])
