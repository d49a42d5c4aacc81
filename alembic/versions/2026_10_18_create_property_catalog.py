from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "2026_10_18_create_property_catalog"
down_revision = None
branch_labels = None
depends_on = None

PROPERTY_TYPES = (
    "apartment", "house", "condo", "townhouse", "studio", "duplex", "triplex", "fourplex", "commercial", "office",
    "retail", "warehouse", "mixed-use",
)
PROPERTY_STATUSES = ("draft", "published", "rented", "maintenance", "under-review", "archived")
UNIT_STATUSES = ("available", "rented", "under-contract", "maintenance", "model-unit", "reserved", "inactive")
IMAGE_TYPES = (
    "exterior", "interior", "floor-plan", "360-view", "video-snapshot", "map-screenshot", "third-party", "other",
)

def tracked_columns():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
    ]

def upgrade():
    op.create_table(
        "properties",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("owner_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("property_type", sa.Enum(*PROPERTY_TYPES, name="propertytype"), nullable=False),
        sa.Column("status", sa.Enum(*PROPERTY_STATUSES, name="propertystatus"), nullable=False, server_default="draft"),
        sa.Column("street_address", sa.String(255), nullable=False),
        sa.Column("street_address_2", sa.String(255)),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("state", sa.String(50), nullable=False),
        sa.Column("zip_code", sa.String(20), nullable=False),
        sa.Column("country", sa.String(50), nullable=False, server_default="United States"),
        sa.Column("county", sa.String(100)),
        sa.Column("timezone", sa.String(50)),
        sa.Column("total_sqft", sa.Numeric(10, 2)),
        sa.Column("bedrooms", sa.Integer),
        sa.Column("bathrooms", sa.Numeric(4, 1)),
        sa.Column("half_bathrooms", sa.Numeric(4, 1)),
        sa.Column("kitchen_type", sa.String(50)),
        sa.Column("heating_type", sa.String(100)),
        sa.Column("cooling_type", sa.String(100)),
        sa.Column("air_conditioning", sa.Boolean),
        sa.Column("elevator_building", sa.Boolean),
        sa.Column("garage_spaces", sa.Integer),
        sa.Column("covered_parking_spaces", sa.Integer),
        sa.Column("outdoor_space", sa.String(100)),
        sa.Column("storage_areas", sa.String(500)),
        sa.Column("energy_efficiency_rating", sa.String(10)),
        sa.Column("year_built", sa.Integer),
        sa.Column("last_renovation_year", sa.Integer),
        sa.Column("hoa_fees", sa.Numeric(10, 2)),
        sa.Column("listing_price", sa.Numeric(12, 2)),
        sa.Column("monthly_rent", sa.Numeric(12, 2)),
        sa.Column("security_deposit", sa.Numeric(12, 2)),
        sa.Column("pet_deposit", sa.Numeric(12, 2)),
        sa.Column("application_fee", sa.Numeric(8, 2)),
        sa.Column("utilities_included", sa.Boolean),
        sa.Column("pet_friendly", sa.Boolean),
        sa.Column("furnished", sa.Boolean),
        sa.Column("parking_available", sa.Boolean),
        sa.Column("smoke_free", sa.Boolean),
        sa.Column("available_from", sa.DateTime(timezone=True)),
        sa.Column("is_available", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("lease_min_months", sa.Integer),
        sa.Column("lease_max_months", sa.Integer),
        sa.Column("background_check_required", sa.Boolean),
        sa.Column("credit_score_minimum", sa.Integer),
        sa.Column("income_multiple", sa.Numeric(4, 2)),
        sa.Column("view_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("inquiry_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("favorite_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_featured", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("featured_until", sa.DateTime(timezone=True)),
        sa.Column("latitude", sa.Float),
        sa.Column("longitude", sa.Float),
        sa.Column("google_maps_url", sa.String(1000)),
        sa.Column("notes", sa.Text),
        sa.Column("meta_data", postgresql.JSONB),
        *tracked_columns(),
        sa.CheckConstraint(
            "view_count >= 0 AND inquiry_count >= 0 AND favorite_count >= 0", name="ck_properties_counters"
        ),
    )
    op.create_index("ix_properties_owner_id", "properties", ["owner_id"])
    op.create_index("ix_properties_property_type", "properties", ["property_type"])
    op.create_index("ix_properties_status", "properties", ["status"])
    op.create_index("ix_properties_city", "properties", ["city"])
    op.create_index("ix_properties_zip_code", "properties", ["zip_code"])
    # Every list query filters out soft-deleted rows
    op.create_index(
        "ix_properties_live_created", "properties", ["created_at"], postgresql_where=sa.text("deleted_at IS NULL")
    )

    op.create_table(
        "property_tags",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("property_id", sa.Uuid, sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tag", sa.String(50), nullable=False),
        sa.UniqueConstraint("property_id", "tag", name="uq_property_tags_property_tag"),
    )
    op.create_index("ix_property_tags_tag", "property_tags", ["tag"])

    op.create_table(
        "property_units",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("property_id", sa.Uuid, sa.ForeignKey("properties.id"), nullable=False),
        sa.Column("unit_number", sa.String(20), nullable=False),
        sa.Column("floor_number", sa.Integer),
        sa.Column("building_section", sa.String(50)),
        sa.Column("sqft", sa.Numeric(10, 2)),
        sa.Column("bedrooms", sa.Integer),
        sa.Column("bathrooms", sa.Numeric(4, 1)),
        sa.Column("half_bathrooms", sa.Numeric(4, 1)),
        sa.Column("monthly_rent", sa.Numeric(10, 2)),
        sa.Column("security_deposit", sa.Numeric(10, 2)),
        sa.Column("pet_deposit", sa.Numeric(10, 2)),
        sa.Column("application_fee", sa.Numeric(8, 2)),
        sa.Column("hold_deposit", sa.Numeric(8, 2)),
        sa.Column("utilities_included", sa.Boolean),
        sa.Column("pet_friendly", sa.Boolean),
        sa.Column("furnished", sa.Boolean),
        sa.Column("parking_assigned", sa.Boolean),
        sa.Column("storage_assigned", sa.Boolean),
        sa.Column("balcony", sa.Boolean),
        sa.Column("available_from", sa.DateTime(timezone=True)),
        sa.Column("minimum_lease_months", sa.Integer),
        sa.Column("maximum_lease_months", sa.Integer),
        sa.Column("background_check_required", sa.Boolean),
        sa.Column("credit_score_minimum", sa.Integer),
        sa.Column("income_multiple_required", sa.Numeric(4, 2)),
        sa.Column("is_available", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("is_premium", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("premium_until", sa.DateTime(timezone=True)),
        sa.Column("notes", sa.Text),
        sa.Column("status", sa.Enum(*UNIT_STATUSES, name="unitstatus"), nullable=False, server_default="available"),
        *tracked_columns(),
    )
    op.create_index("ix_property_units_property_id", "property_units", ["property_id"])
    op.create_index("ix_property_units_unit_number", "property_units", ["unit_number"])
    op.create_index("ix_property_units_status", "property_units", ["status"])

    op.create_table(
        "property_images",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("property_id", sa.Uuid, sa.ForeignKey("properties.id"), nullable=True),
        sa.Column("unit_id", sa.Uuid, sa.ForeignKey("property_units.id"), nullable=True),
        sa.Column("image_url", sa.String(1000), nullable=False),
        sa.Column("thumbnail_url", sa.String(1000)),
        sa.Column("alt_text", sa.String(255)),
        sa.Column("description", sa.String(500)),
        sa.Column("image_type", sa.Enum(*IMAGE_TYPES, name="imagetype"), nullable=False),
        sa.Column("file_size_bytes", sa.BigInteger),
        sa.Column("width_pixels", sa.Integer),
        sa.Column("height_pixels", sa.Integer),
        sa.Column("format", sa.String(20)),
        sa.Column("display_order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_primary", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("is_featured", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("is_360_degree", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("room_type", sa.String(100)),
        sa.Column("meta_data", postgresql.JSONB),
        *tracked_columns(),
        sa.CheckConstraint("(property_id IS NULL) <> (unit_id IS NULL)", name="ck_property_images_single_owner"),
    )
    op.create_index("ix_property_images_property_id", "property_images", ["property_id"])
    op.create_index("ix_property_images_unit_id", "property_images", ["unit_id"])
    op.create_index("ix_property_images_display_order", "property_images", ["display_order"])

def downgrade():
    op.drop_table("property_images")
    op.drop_table("property_units")
    op.drop_table("property_tags")
    op.drop_table("properties")
    for name in ("imagetype", "unitstatus", "propertystatus", "propertytype"):
        op.execute(f"DROP TYPE IF EXISTS {name}")
