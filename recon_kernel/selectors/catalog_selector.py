"""
Module: recon_kernel.selectors.catalog_selector
Responsibility: Read-only access to the secondary product catalog.
"""

from collections.abc import Iterable

from sqlalchemy import select

from recon_kernel.domain.dtos import ProductInfo
from recon_kernel.models.catalog import CatalogProduct
from recon_kernel.selectors.base import BaseSelector

_IN_CHUNK = 500


class CatalogSelector(BaseSelector[CatalogProduct]):
    """Catalog lookups keyed by normalized item code."""

    def products(self, codes: Iterable[str] | None = None) -> dict[str, ProductInfo]:
        """
        Catalog entries for ``codes`` (all entries when None).

        Returns:
            Mapping of cod_item -> ProductInfo.
        """
        if codes is None:
            rows = self.session.execute(select(CatalogProduct)).scalars().all()
        else:
            wanted = sorted(set(codes))
            rows = []
            for i in range(0, len(wanted), _IN_CHUNK):
                chunk = wanted[i:i + _IN_CHUNK]
                rows.extend(
                    self.session.execute(
                        select(CatalogProduct).where(CatalogProduct.cod_item.in_(chunk))
                    ).scalars()
                )
        return {
            row.cod_item: ProductInfo(row.cod_item, row.description, row.unit)
            for row in rows
        }
