"""SQLAlchemy table mappings for the order store.

These rows are persistence shapes only; repositories translate them to
and from the domain dataclasses.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class OrderRow(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_number: Mapped[str] = mapped_column(String(64), unique=True)
    status: Mapped[str] = mapped_column(String(32), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    reopened_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    items: Mapped[list[OrderItemRow]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemRow.position",
    )
    activity: Mapped[list[ActivityRow]] = relationship(
        cascade="all, delete-orphan",
        order_by="ActivityRow.id",
    )


class OrderItemRow(Base):
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("download_count <= max_downloads", name="ck_download_ceiling"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), index=True)
    position: Mapped[int] = mapped_column(Integer, default=0)
    product_id: Mapped[str] = mapped_column(String(64))
    name: Mapped[str] = mapped_column(String(255))
    quantity: Mapped[int] = mapped_column(Integer)
    price: Mapped[str] = mapped_column(String(32))  # Decimal as text, exact on every backend
    currency: Mapped[str] = mapped_column(String(3), default="USD")
    is_digital: Mapped[bool] = mapped_column(Boolean, default=False)
    download_count: Mapped[int] = mapped_column(Integer, default=0)
    max_downloads: Mapped[int] = mapped_column(Integer, default=0)
    digital_file_id: Mapped[int | None] = mapped_column(ForeignKey("digital_files.id"))

    order: Mapped[OrderRow] = relationship(back_populates="items")


class ActivityRow(Base):
    __tablename__ = "order_activity"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    actor: Mapped[str] = mapped_column(String(255))
    message: Mapped[str] = mapped_column(Text)


class DigitalFileRow(Base):
    __tablename__ = "digital_files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    file_url: Mapped[str] = mapped_column(Text)
    file_name: Mapped[str] = mapped_column(String(255))
    format: Mapped[str] = mapped_column(String(32))
    file_size: Mapped[int] = mapped_column(Integer)


class DownloadTokenRow(Base):
    __tablename__ = "digital_download_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    token: Mapped[str] = mapped_column(String(128), unique=True)
    # Lookup keys only; deleting a token never touches the item or file.
    order_item_id: Mapped[int] = mapped_column(ForeignKey("order_items.id"), index=True)
    digital_file_id: Mapped[int] = mapped_column(ForeignKey("digital_files.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    downloaded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    ip_address: Mapped[str | None] = mapped_column(String(64))
    user_agent: Mapped[str | None] = mapped_column(String(512))


class ReturnRow(Base):
    __tablename__ = "return_requests"
    __table_args__ = (
        # At most one non-voided request per item.
        Index(
            "uq_open_return_per_item",
            "order_item_id",
            unique=True,
            sqlite_where=text("status != 'REJECTED'"),
            postgresql_where=text("status != 'REJECTED'"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), index=True)
    order_item_id: Mapped[int] = mapped_column(ForeignKey("order_items.id"))
    reason: Mapped[str] = mapped_column(String(64))
    details: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(32), default="PENDING")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
