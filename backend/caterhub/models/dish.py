"""
CaterHub Backend — Dish SQLAlchemy Model
==========================================

What:  ORM model for the `dishes` table plus the dish ↔ free form link table.
Why:   A dish is the smallest catalog unit a caterer sells; package items
       reference dishes.

Invariants (enforced by DishService at write time):
    - sub_category.category_id == category_id
    - a dish referenced by any package item cannot be deleted
      (package_items.dish_id is also ON DELETE RESTRICT as a backstop)

Query Patterns:
    - List a caterer's dishes: WHERE caterer_id = :id ORDER BY created_at DESC
      → idx_dishes_caterer_created
"""

import uuid
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from caterhub.database import Base
from caterhub.models.common import TimestampMixin, UUIDPrimaryKeyMixin
from caterhub.models.lookup import Category, CuisineType, FreeForm, SubCategory

dish_free_forms = Table(
    "dish_free_forms",
    Base.metadata,
    Column("dish_id", ForeignKey("dishes.id", ondelete="CASCADE"), primary_key=True),
    Column("free_form_id", ForeignKey("free_forms.id", ondelete="CASCADE"), primary_key=True),
)


class Dish(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "dishes"

    caterer_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    cuisine_type_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("cuisine_types.id"), nullable=False
    )
    category_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("categories.id"), nullable=False
    )
    sub_category_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("sub_categories.id"), nullable=False
    )

    quantity_in_gm: Mapped[int | None] = mapped_column(Integer, nullable=True)
    pieces: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="AED")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    cuisine_type: Mapped[CuisineType] = relationship(lazy="selectin")
    category: Mapped[Category] = relationship(lazy="selectin")
    sub_category: Mapped[SubCategory] = relationship(lazy="selectin")
    free_forms: Mapped[list[FreeForm]] = relationship(
        secondary=dish_free_forms,
        lazy="selectin",
        order_by=FreeForm.name,
    )

    __table_args__ = (
        Index("idx_dishes_caterer_created", "caterer_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Dish(id={self.id}, name='{self.name}', caterer_id={self.caterer_id})>"
