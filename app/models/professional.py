"""Professional (tenant) model."""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class Professional(Base, TimestampMixin):
    """A business account publishing a booking page and a chat-bot.

    The professional is the unit of data isolation: services, working
    hours, blocked dates, bookings and contacts all belong to exactly one.
    """

    __tablename__ = "professionals"

    business_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    # Public booking page path segment
    slug: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        index=True,
    )
    email: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    # IANA timezone the professional operates in (e.g. "Europe/Dublin")
    timezone: Mapped[str] = mapped_column(
        String(64),
        default="Europe/Dublin",
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Professional {self.slug}>"
