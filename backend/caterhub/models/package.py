"""
CaterHub Backend — Package and PackageItem SQLAlchemy Models
==============================================================

What:  ORM models for packages, the items that compose them, and the
       read-only category selection / occasion associations.

Lifecycle of a PackageItem:
    1. Created as a draft (package_id NULL) or directly inside a package
    2. Linked later in bulk (link-batch sets package_id on many items)
    3. Returned to draft when its package drops it or is deleted
    4. Deleted by its owning caterer

Invariants:
    - package_items.caterer_id is the owner; a linked item's package has the
      same caterer_id (checked by the services, not the schema)
    - package_items.dish_id is ON DELETE RESTRICT
"""

import enum
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
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from caterhub.database import Base
from caterhub.models.common import TimestampMixin, UUIDPrimaryKeyMixin
from caterhub.models.dish import Dish
from caterhub.models.lookup import Category, Occasion, PackageType


class CustomisationType(str, enum.Enum):
    FIXED = "FIXED"
    CUSTOMISABLE = "CUSTOMISABLE"


package_occasions = Table(
    "package_occasions",
    Base.metadata,
    Column("package_id", ForeignKey("packages.id", ondelete="CASCADE"), primary_key=True),
    Column("occasion_id", ForeignKey("occasions.id", ondelete="CASCADE"), primary_key=True),
)


class Package(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "packages"

    caterer_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    people_count: Mapped[int] = mapped_column(Integer, nullable=False)
    package_type_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("package_types.id"), nullable=False
    )
    cover_image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="AED")
    rating: Mapped[Decimal | None] = mapped_column(Numeric(2, 1), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    customisation_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=CustomisationType.FIXED.value
    )

    package_type: Mapped[PackageType] = relationship(lazy="selectin")
    items: Mapped[list["PackageItem"]] = relationship(
        back_populates="package",
        lazy="selectin",
        order_by="PackageItem.created_at",
        passive_deletes=True,
    )
    category_selections: Mapped[list["PackageCategorySelection"]] = relationship(
        lazy="selectin",
        cascade="all, delete-orphan",
    )
    occasions: Mapped[list[Occasion]] = relationship(
        secondary=package_occasions,
        lazy="selectin",
        order_by=Occasion.name,
    )

    __table_args__ = (
        Index("idx_packages_caterer_created", "caterer_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Package(id={self.id}, name='{self.name}', caterer_id={self.caterer_id})>"


class PackageItem(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "package_items"

    caterer_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    package_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("packages.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    dish_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("dishes.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    people_count: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    price_at_time: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    is_optional: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_addon: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    dish: Mapped[Dish] = relationship(lazy="selectin")
    package: Mapped[Package | None] = relationship(back_populates="items")

    __table_args__ = (
        Index("idx_package_items_caterer_created", "caterer_id", "created_at"),
    )

    @property
    def is_draft(self) -> bool:
        return self.package_id is None

    def __repr__(self) -> str:
        return (
            f"<PackageItem(id={self.id}, dish_id={self.dish_id}, "
            f"package_id={self.package_id})>"
        )


class PackageCategorySelection(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """How many dishes a customer may pick from a category in a customisable package."""

    __tablename__ = "package_category_selections"

    package_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("packages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("categories.id"), nullable=False
    )
    num_dishes_to_select: Mapped[int | None] = mapped_column(Integer, nullable=True)

    category: Mapped[Category] = relationship(lazy="selectin")
