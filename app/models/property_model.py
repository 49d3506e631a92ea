"""Property SQLAlchemy model — a catalog listing for rent or sale."""
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    Float,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.enums import ListingKind, PropertyStatus


def _enum_values(enum_cls) -> List[str]:
    return [member.value for member in enum_cls]


class Property(Base):
    __tablename__ = "properties"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(String(500))
    public_address: Mapped[str] = mapped_column(String(500), comment="Shown to every visitor")
    full_address: Mapped[Optional[str]] = mapped_column(String(500), comment="Privileged viewers only")

    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), comment="Monthly when rent, total when sale")
    listing_kind: Mapped[ListingKind] = mapped_column(
        Enum(ListingKind, native_enum=False, values_callable=_enum_values, length=10),
        comment="rent, sale",
    )
    bedroom_count: Mapped[int] = mapped_column(Integer, default=0)
    bathroom_count: Mapped[int] = mapped_column(Integer, default=0)
    area_sq_meters: Mapped[float] = mapped_column(Float)

    primary_image_ref: Mapped[str] = mapped_column(String(2048))
    additional_image_refs: Mapped[List[str]] = mapped_column(JSON, default=list)
    description: Mapped[Optional[str]] = mapped_column(Text)

    status: Mapped[PropertyStatus] = mapped_column(
        Enum(PropertyStatus, native_enum=False, values_callable=_enum_values, length=10),
        default=PropertyStatus.ACTIVE,
        comment="active, pending, archived",
    )
    is_public: Mapped[bool] = mapped_column(Boolean, default=True)
    featured: Mapped[bool] = mapped_column(Boolean, default=False)

    contact_phone: Mapped[Optional[str]] = mapped_column(String(50))
    contact_email: Mapped[Optional[str]] = mapped_column(String(255))

    version: Mapped[int] = mapped_column(Integer, default=1, comment="Bumped on every write")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("ix_properties_listing_kind", "listing_kind"),
        Index("ix_properties_status_is_public", "status", "is_public"),
        Index("ix_properties_price", "price"),
        Index("ix_properties_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, title='{self.title}', kind={self.listing_kind})>"
