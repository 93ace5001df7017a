"""Client contact book, kept per professional."""

from sqlalchemy import String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TenantOwnedMixin, TimestampMixin


class Contact(Base, TimestampMixin, TenantOwnedMixin):
    """A client known to one professional.

    The same phone number may be stored by several professionals; those
    rows have no relation to each other.
    """

    __tablename__ = "contacts"
    __table_args__ = (
        UniqueConstraint("professional_id", "phone", name="uq_contacts_professional_phone"),
    )

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    # International form, e.g. +353851234567
    phone: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        index=True,
    )
    email: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Contact {self.phone}>"
