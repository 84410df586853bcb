"""Initial retail schema: locations, catalog, per-location stock, sales, exchange rates

Revision ID: 20261019_initial_retail
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial_retail"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "locations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("type", sa.String(16), nullable=False, server_default="STORE"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(64), nullable=False, server_default="Otros"),
        sa.Column("unit_of_measure", sa.String(32), nullable=False, server_default="unit"),
        sa.Column("sale_price_amount_cents", sa.Integer(), nullable=False),
        sa.Column("sale_price_currency", sa.String(3), nullable=False, server_default="CUP"),
        sa.Column("cost_price_amount_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("cost_price_currency", sa.String(3), nullable=False, server_default="CUP"),
        sa.Column("sale_price_cents", sa.Integer(), nullable=True),
        sa.Column("cost_price_cents", sa.Integer(), nullable=True),
        sa.Column("sale_price_rate_applied", sa.Numeric(18, 6), nullable=True),
        sa.Column("cost_price_rate_applied", sa.Numeric(18, 6), nullable=True),
        sa.Column("last_recalculated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("stock_minimum", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("image_url", sa.String(512), nullable=True),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.CheckConstraint("sale_price_amount_cents >= 0", name="ck_products_sale_amount_nonneg"),
        sa.CheckConstraint("cost_price_amount_cents >= 0", name="ck_products_cost_amount_nonneg"),
        sa.CheckConstraint("stock_minimum >= 0", name="ck_products_stock_minimum_nonneg"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("products", schema=None) as batch_op:
        batch_op.create_index("ix_products_name", ["name"], unique=False)
        batch_op.create_index("ix_products_sale_currency", ["sale_price_currency"], unique=False)
        batch_op.create_index("ix_products_cost_currency", ["cost_price_currency"], unique=False)
        batch_op.create_index("ix_products_sale_price_cents", ["sale_price_cents"], unique=False)

    op.create_table(
        "inventory_items",
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("location_id", sa.Integer(), nullable=False),
        sa.Column("stock", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.CheckConstraint("stock >= 0", name="ck_inventory_items_stock_nonneg"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("product_id", "location_id"),
    )

    with op.batch_alter_table("inventory_items", schema=None) as batch_op:
        batch_op.create_index("ix_inventory_items_location_id", ["location_id"], unique=False)

    op.create_table(
        "sales",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("location_id", sa.Integer(), nullable=False),
        sa.Column("total_cents", sa.Integer(), nullable=False),
        sa.Column("client_reference", sa.String(64), nullable=True),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("client_reference"),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("sales", schema=None) as batch_op:
        batch_op.create_index("ix_sales_created_id", ["created_at", "id"], unique=False)
        batch_op.create_index("ix_sales_location_created", ["location_id", "created_at"], unique=False)

    op.create_table(
        "sale_lines",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sale_id", sa.Integer(), nullable=False),
        sa.Column("line_number", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("unit_price_cents", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("line_total_cents", sa.Integer(), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_sale_lines_quantity_pos"),
        sa.ForeignKeyConstraint(["sale_id"], ["sales.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("sale_id", "line_number", name="uq_sale_lines_sale_line"),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("sale_lines", schema=None) as batch_op:
        batch_op.create_index("ix_sale_lines_sale_id", ["sale_id"], unique=False)
        batch_op.create_index("ix_sale_lines_product_id", ["product_id"], unique=False)

    op.create_table(
        "exchange_rates",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("currency_from", sa.String(3), nullable=False),
        sa.Column("currency_to", sa.String(3), nullable=False),
        sa.Column("rate", sa.Numeric(18, 6), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.CheckConstraint("rate > 0", name="ck_exchange_rates_rate_pos"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("currency_from", "currency_to", name="uq_exchange_rates_pair"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "exchange_rates_history",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("currency_from", sa.String(3), nullable=False),
        sa.Column("currency_to", sa.String(3), nullable=False),
        sa.Column("old_rate", sa.Numeric(18, 6), nullable=True),
        sa.Column("new_rate", sa.Numeric(18, 6), nullable=False),
        sa.Column("changed_by", sa.String(120), nullable=False, server_default="admin"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    with op.batch_alter_table("exchange_rates_history", schema=None) as batch_op:
        batch_op.create_index(
            "ix_rate_history_pair_created", ["currency_from", "currency_to", "created_at"], unique=False
        )

    # Seed the default warehouse and stores
    locations = sa.table(
        "locations",
        sa.column("name", sa.String),
        sa.column("type", sa.String),
    )
    op.bulk_insert(
        locations,
        [
            {"name": "Almacén Principal", "type": "WAREHOUSE"},
            {"name": "Tienda Centro", "type": "STORE"},
            {"name": "Tienda Norte", "type": "STORE"},
        ],
    )


def downgrade():
    with op.batch_alter_table("exchange_rates_history", schema=None) as batch_op:
        batch_op.drop_index("ix_rate_history_pair_created")
    op.drop_table("exchange_rates_history")
    op.drop_table("exchange_rates")

    with op.batch_alter_table("sale_lines", schema=None) as batch_op:
        batch_op.drop_index("ix_sale_lines_product_id")
        batch_op.drop_index("ix_sale_lines_sale_id")
    op.drop_table("sale_lines")

    with op.batch_alter_table("sales", schema=None) as batch_op:
        batch_op.drop_index("ix_sales_location_created")
        batch_op.drop_index("ix_sales_created_id")
    op.drop_table("sales")

    with op.batch_alter_table("inventory_items", schema=None) as batch_op:
        batch_op.drop_index("ix_inventory_items_location_id")
    op.drop_table("inventory_items")

    with op.batch_alter_table("products", schema=None) as batch_op:
        batch_op.drop_index("ix_products_sale_price_cents")
        batch_op.drop_index("ix_products_cost_currency")
        batch_op.drop_index("ix_products_sale_currency")
        batch_op.drop_index("ix_products_name")
    op.drop_table("products")

    op.drop_table("locations")
