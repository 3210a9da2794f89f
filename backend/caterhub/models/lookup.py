"""
CaterHub Backend — Lookup Table Models
========================================

What:  Read-mostly reference data shared by every tenant: cuisine types,
       categories and their subcategories, free forms (dietary labels),
       package types and occasions.
Why:   Dishes and packages reference these rows; the metadata routes list
       them so the caterer UI can build its pickers.
Who:   Populated by caterhub.seed; never mutated through the API.
"""

import uuid

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from caterhub.database import Base
from caterhub.models.common import TimestampMixin, UUIDPrimaryKeyMixin


class _NamedLookup(UUIDPrimaryKeyMixin, TimestampMixin):
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(name='{self.name}')>"


class CuisineType(_NamedLookup, Base):
    __tablename__ = "cuisine_types"


class Category(_NamedLookup, Base):
    __tablename__ = "categories"

    sub_categories: Mapped[list["SubCategory"]] = relationship(
        back_populates="category",
        lazy="selectin",
        order_by="SubCategory.name",
    )


class SubCategory(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A subcategory always has a parent category; names are unique per parent."""

    __tablename__ = "sub_categories"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("categories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    category: Mapped[Category] = relationship(back_populates="sub_categories")

    __table_args__ = (
        UniqueConstraint("category_id", "name", name="uq_sub_categories_category_name"),
    )

    def __repr__(self) -> str:
        return f"<SubCategory(name='{self.name}', category_id={self.category_id})>"


class FreeForm(_NamedLookup, Base):
    __tablename__ = "free_forms"


class PackageType(_NamedLookup, Base):
    __tablename__ = "package_types"


class Occasion(_NamedLookup, Base):
    __tablename__ = "occasions"
