"""Create users, lookup and catalog tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates every table of the catering backend: users, the six lookup
       tables, dishes (+ free form links), packages (+ occasion links and
       category selections) and package items.
How:   Generic sa.Uuid / DateTime(timezone=True) types, matching the models,
       so the migration also runs against SQLite.

Rollback: downgrade() drops everything in reverse dependency order.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LOOKUP_TABLES = ("cuisine_types", "categories", "free_forms", "package_types", "occasions")


def _id_column() -> sa.Column:
    return sa.Column("id", sa.Uuid(), nullable=False)


def _timestamp_columns() -> list:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def _create_created_at_index(table: str) -> None:
    op.create_index(f"ix_{table}_created_at", table, ["created_at"])


def upgrade() -> None:
    # ── Users ─────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        _id_column(),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, comment="USER, ADMIN or CATERER"),
        sa.Column("company_name", sa.String(255), nullable=True),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    _create_created_at_index("users")

    # ── Lookup tables ─────────────────────────────────────────────────────
    for table in LOOKUP_TABLES:
        op.create_table(
            table,
            _id_column(),
            sa.Column("name", sa.String(100), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            *_timestamp_columns(),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("name"),
        )
        _create_created_at_index(table)

    op.create_table(
        "sub_categories",
        _id_column(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category_id", sa.Uuid(), nullable=False),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("category_id", "name", name="uq_sub_categories_category_name"),
    )
    op.create_index("ix_sub_categories_category_id", "sub_categories", ["category_id"])
    _create_created_at_index("sub_categories")

    # ── Dishes ────────────────────────────────────────────────────────────
    op.create_table(
        "dishes",
        _id_column(),
        sa.Column("caterer_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("cuisine_type_id", sa.Uuid(), nullable=False),
        sa.Column("category_id", sa.Uuid(), nullable=False),
        sa.Column("sub_category_id", sa.Uuid(), nullable=False),
        sa.Column("quantity_in_gm", sa.Integer(), nullable=True),
        sa.Column("pieces", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["caterer_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["cuisine_type_id"], ["cuisine_types.id"]),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"]),
        sa.ForeignKeyConstraint(["sub_category_id"], ["sub_categories.id"]),
    )
    # Most common query: a caterer's dishes, newest first
    op.create_index("idx_dishes_caterer_created", "dishes", ["caterer_id", "created_at"])
    _create_created_at_index("dishes")

    op.create_table(
        "dish_free_forms",
        sa.Column("dish_id", sa.Uuid(), nullable=False),
        sa.Column("free_form_id", sa.Uuid(), nullable=False),
        sa.PrimaryKeyConstraint("dish_id", "free_form_id"),
        sa.ForeignKeyConstraint(["dish_id"], ["dishes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["free_form_id"], ["free_forms.id"], ondelete="CASCADE"),
    )

    # ── Packages ──────────────────────────────────────────────────────────
    op.create_table(
        "packages",
        _id_column(),
        sa.Column("caterer_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("people_count", sa.Integer(), nullable=False),
        sa.Column("package_type_id", sa.Uuid(), nullable=False),
        sa.Column("cover_image_url", sa.String(500), nullable=True),
        sa.Column("total_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("rating", sa.Numeric(2, 1), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False),
        sa.Column("customisation_type", sa.String(20), nullable=False, comment="FIXED or CUSTOMISABLE"),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["caterer_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["package_type_id"], ["package_types.id"]),
    )
    op.create_index("idx_packages_caterer_created", "packages", ["caterer_id", "created_at"])
    _create_created_at_index("packages")

    op.create_table(
        "package_occasions",
        sa.Column("package_id", sa.Uuid(), nullable=False),
        sa.Column("occasion_id", sa.Uuid(), nullable=False),
        sa.PrimaryKeyConstraint("package_id", "occasion_id"),
        sa.ForeignKeyConstraint(["package_id"], ["packages.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["occasion_id"], ["occasions.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "package_category_selections",
        _id_column(),
        sa.Column("package_id", sa.Uuid(), nullable=False),
        sa.Column("category_id", sa.Uuid(), nullable=False),
        sa.Column("num_dishes_to_select", sa.Integer(), nullable=True),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["package_id"], ["packages.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"]),
    )
    op.create_index(
        "ix_package_category_selections_package_id",
        "package_category_selections",
        ["package_id"],
    )
    _create_created_at_index("package_category_selections")

    # ── Package items ─────────────────────────────────────────────────────
    op.create_table(
        "package_items",
        _id_column(),
        sa.Column("caterer_id", sa.Uuid(), nullable=False),
        sa.Column("package_id", sa.Uuid(), nullable=True, comment="NULL means draft"),
        sa.Column("dish_id", sa.Uuid(), nullable=False),
        sa.Column("people_count", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price_at_time", sa.Numeric(10, 2), nullable=True),
        sa.Column("is_optional", sa.Boolean(), nullable=False),
        sa.Column("is_addon", sa.Boolean(), nullable=False),
        *_timestamp_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["caterer_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["package_id"], ["packages.id"], ondelete="SET NULL"),
        # A referenced dish cannot be deleted
        sa.ForeignKeyConstraint(["dish_id"], ["dishes.id"], ondelete="RESTRICT"),
    )
    op.create_index("ix_package_items_package_id", "package_items", ["package_id"])
    op.create_index("ix_package_items_dish_id", "package_items", ["dish_id"])
    op.create_index(
        "idx_package_items_caterer_created", "package_items", ["caterer_id", "created_at"]
    )
    _create_created_at_index("package_items")


def downgrade() -> None:
    """Drop every table. Destructive: all catalog data is lost."""
    op.drop_table("package_items")
    op.drop_table("package_category_selections")
    op.drop_table("package_occasions")
    op.drop_table("packages")
    op.drop_table("dish_free_forms")
    op.drop_table("dishes")
    op.drop_table("sub_categories")
    for table in reversed(LOOKUP_TABLES):
        op.drop_table(table)
    op.drop_table("users")
