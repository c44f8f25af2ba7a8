"""
Module: recon_kernel.models.catalog
Responsibility: ORM persistence for the secondary product catalog -- a
    merchant-maintained list used for codes the ledger never registered.

Invariants enforced:
    - One row per normalized cod_item (upsert by key on import).
"""

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from recon_kernel.db.base import TrackedBase


class CatalogProduct(TrackedBase):
    """Catalog description and unit for an item code."""

    __tablename__ = "catalog_products"

    __table_args__ = (
        UniqueConstraint("cod_item", name="uq_catalog_cod_item"),
    )

    cod_item: Mapped[str] = mapped_column(String(60), nullable=False)

    description: Mapped[str | None] = mapped_column(String(300), nullable=True)

    unit: Mapped[str | None] = mapped_column(String(20), nullable=True)
