"""SQLAlchemy models for database tables.

Persisted layout of the catalog core: four primary tables (products,
categories, brands, enquiries), the satellite tables (enquiry_items,
enquiry_messages, customers, business_types) and idempotency_responses.
Cross-aggregate references are plain id columns; referential consistency
is maintained by the services.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from horeca.domain.entities import Enquiry, Product, TaxonomyNode
from horeca.domain.value_objects import TaxonomyKind
from horeca.infrastructure.database import Base


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


# ============================================================================
# Taxonomy Models
# ============================================================================


class _TaxonomyColumns:
    """Columns shared by the category and brand tables."""

    id = Column(String(36), primary_key=True)
    slug = Column(String(200), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=False)
    level = Column(String(20), nullable=False, index=True)
    parent_id = Column(String(36), nullable=True, index=True)
    tagline = Column(String(500), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    image = Column(String(1000), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    @classmethod
    def from_entity(cls, node: TaxonomyNode) -> Any:
        return cls(
            id=node.id,
            slug=node.slug,
            name=node.name,
            level=node.level.value,
            parent_id=node.parent_id,
            tagline=node.tagline,
            description=node.description,
            image=node.image,
            created_at=node.created_at,
            updated_at=node.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "level": self.level,
            "parent_id": self.parent_id,
            "tagline": self.tagline,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class CategoryModel(_TaxonomyColumns, Base):
    """Category node (department > category > subcategory > type)."""

    __tablename__ = "categories"


class BrandModel(_TaxonomyColumns, Base):
    """Brand node (department > category > subcategory)."""

    __tablename__ = "brands"


def taxonomy_model_for(kind: TaxonomyKind) -> type[CategoryModel] | type[BrandModel]:
    """Table model holding nodes of the given kind."""
    return CategoryModel if kind is TaxonomyKind.CATEGORY else BrandModel


class BusinessTypeModel(Base):
    """Buyer segment referenced by product business_type_slugs."""

    __tablename__ = "business_types"

    id = Column(String(36), primary_key=True)
    slug = Column(String(200), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    image = Column(String(1000), nullable=False, default="")
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now)


# ============================================================================
# Product Model
# ============================================================================


class ProductModel(Base):
    """Product row; nested value objects are stored as JSONB documents."""

    __tablename__ = "products"

    id = Column(String(36), primary_key=True)
    slug = Column(String(300), nullable=False, unique=True, index=True)
    title = Column(String(500), nullable=False)
    brand = Column(String(200), nullable=False, default="", index=True)
    sku = Column(String(100), nullable=False, default="")
    price = Column(Integer, nullable=True)
    summary = Column(Text, nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    status = Column(String(20), nullable=False, default="in-stock", index=True)
    featured = Column(Boolean, nullable=False, default=False, index=True)
    premium = Column(Boolean, nullable=False, default=False)
    hero_image = Column(String(1000), nullable=False)
    gallery_images = Column(JSONB, nullable=False, default=list)
    category_id = Column(String(36), nullable=True, index=True)
    additional_category_ids = Column(JSONB, nullable=False, default=list)
    brand_category_id = Column(String(36), nullable=True, index=True)
    additional_brand_category_ids = Column(JSONB, nullable=False, default=list)
    business_type_slugs = Column(JSONB, nullable=False, default=list)
    specifications = Column(JSONB, nullable=False, default=list)
    filters = Column(JSONB, nullable=False, default=list)
    color_variants = Column(JSONB, nullable=False, default=list)
    related_product_ids = Column(JSONB, nullable=False, default=list)
    tags = Column(JSONB, nullable=False, default=list)
    manual_tags = Column(JSONB, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    @classmethod
    def from_entity(cls, product: Product) -> "ProductModel":
        """Build a row from a Product aggregate."""
        return cls(
            id=product.id,
            slug=product.slug,
            title=product.title,
            brand=product.brand,
            sku=product.sku,
            price=product.price,
            summary=product.summary,
            description=product.description,
            status=product.status.value,
            featured=product.featured,
            premium=product.premium,
            hero_image=product.hero_image,
            gallery_images=list(product.gallery_images),
            category_id=product.category_id,
            additional_category_ids=list(product.additional_category_ids),
            brand_category_id=product.brand_category_id,
            additional_brand_category_ids=list(product.additional_brand_category_ids),
            business_type_slugs=list(product.business_type_slugs),
            specifications=[
                {"label": s.label, "value": s.value, "unit": s.unit}
                for s in product.specifications
            ],
            filters=[{"key": f.key, "values": list(f.values)} for f in product.filters],
            color_variants=[
                {
                    "color_name": v.color_name,
                    "color_hex": v.color_hex,
                    "images": list(v.images),
                    "is_default": v.is_default,
                }
                for v in product.color_variants
            ],
            related_product_ids=list(product.related_product_ids),
            tags=list(product.tags),
            manual_tags=list(product.manual_tags),
            created_at=product.created_at,
            updated_at=product.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "slug": self.slug,
            "title": self.title,
            "brand": self.brand,
            "price": self.price,
            "status": self.status,
            "featured": self.featured,
            "tags": self.tags,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


# ============================================================================
# Customer and Enquiry Models
# ============================================================================


class CustomerModel(Base):
    """Customer record reused across enquiries."""

    __tablename__ = "customers"
    __table_args__ = (UniqueConstraint("email", "phone", name="uq_customers_email_phone"),)

    id = Column(String(36), primary_key=True)
    name = Column(String(200), nullable=False, default="")
    company_name = Column(String(200), nullable=False, default="")
    email = Column(String(255), nullable=False, default="", index=True)
    phone = Column(String(50), nullable=False, index=True)
    tags = Column(JSONB, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now)


class EnquiryModel(Base):
    """Enquiry row with denormalized contact fields."""

    __tablename__ = "enquiries"

    id = Column(String(36), primary_key=True)
    human_enquiry_id = Column(String(20), nullable=False, unique=True, index=True)
    customer_id = Column(String(36), nullable=True, index=True)
    name = Column(String(200), nullable=False, default="")
    email = Column(String(255), nullable=False, default="", index=True)
    phone = Column(String(50), nullable=False)
    company = Column(String(200), nullable=False, default="")
    state = Column(String(100), nullable=False, default="")
    source = Column(String(100), nullable=False, default="website-form")
    user_type = Column(String(20), nullable=False, default="unknown")
    type = Column(String(30), nullable=False, default="enquiry-only")
    categories = Column(JSONB, nullable=False, default=list)
    message = Column(Text, nullable=False, default="")
    priority = Column(String(10), nullable=False, default="normal", index=True)
    status = Column(String(20), nullable=False, default="new", index=True)
    assigned_to = Column(String(200), nullable=False, default="", index=True)
    notes = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    # Relationships
    items = relationship(
        "EnquiryItemModel",
        back_populates="enquiry",
        cascade="all, delete-orphan",
    )
    messages = relationship(
        "EnquiryMessageModel",
        back_populates="enquiry",
        cascade="all, delete-orphan",
        order_by="EnquiryMessageModel.created_at",
    )

    @classmethod
    def from_entity(cls, enquiry: Enquiry) -> "EnquiryModel":
        """Build a row, with its items and messages, from an Enquiry.

        Items are attached to the same row object so they are flushed in
        the same transaction as the enquiry.
        """
        row = cls(
            id=enquiry.id,
            human_enquiry_id=enquiry.human_enquiry_id,
            customer_id=enquiry.customer_id,
            name=enquiry.name,
            email=enquiry.email,
            phone=enquiry.phone,
            company=enquiry.company,
            state=enquiry.state,
            source=enquiry.source,
            user_type=enquiry.user_type.value,
            type=enquiry.type.value,
            categories=list(enquiry.categories),
            message=enquiry.message,
            priority=enquiry.priority.value,
            status=enquiry.status.value,
            assigned_to=enquiry.assigned_to,
            notes=enquiry.notes,
            created_at=enquiry.created_at,
            updated_at=enquiry.updated_at,
        )
        row.items = [
            EnquiryItemModel(
                id=item.id,
                enquiry_id=enquiry.id,
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity,
                color_name=item.color_name,
                notes=item.notes,
                created_at=item.created_at,
            )
            for item in enquiry.items
        ]
        row.messages = [
            EnquiryMessageModel(
                id=entry.id,
                enquiry_id=enquiry.id,
                sender=entry.sender.value,
                channel=entry.channel.value,
                message=entry.message,
                created_by=entry.created_by,
                created_at=entry.created_at,
            )
            for entry in enquiry.messages
        ]
        return row


class EnquiryItemModel(Base):
    """Enquiry line; product_id is null when the product was unknown."""

    __tablename__ = "enquiry_items"

    id = Column(String(36), primary_key=True)
    enquiry_id = Column(
        String(36),
        ForeignKey("enquiries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = Column(String(36), nullable=True, index=True)
    product_name = Column(String(500), nullable=False)
    quantity = Column(Integer, nullable=False)
    color_name = Column(String(100), nullable=True)
    notes = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    enquiry = relationship("EnquiryModel", back_populates="items")


class EnquiryMessageModel(Base):
    """Append-only communication log entry."""

    __tablename__ = "enquiry_messages"

    id = Column(String(36), primary_key=True)
    enquiry_id = Column(
        String(36),
        ForeignKey("enquiries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sender = Column(String(20), nullable=False, default="admin")
    channel = Column(String(20), nullable=False, default="internal-note")
    message = Column(Text, nullable=False)
    created_by = Column(String(200), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    enquiry = relationship("EnquiryModel", back_populates="messages")


# ============================================================================
# Idempotency Model
# ============================================================================


class IdempotencyResponse(Base):
    """Stored response for a retried storefront write."""

    __tablename__ = "idempotency_responses"

    idempotency_key = Column(String(100), primary_key=True)
    endpoint = Column(String(200), primary_key=True)
    method = Column(String(10), primary_key=True)
    response_status = Column(Integer, nullable=False)
    response_body = Column(JSONB, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    request_hash = Column(String(64), nullable=True)
