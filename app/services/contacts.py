"""Per-professional contact book."""

import logging
from typing import Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, ValidationError
from app.models.contact import Contact
from app.services.tenant_scope import TenantScope
from app.utils.phone import format_phone_international

logger = logging.getLogger(__name__)


class ContactService:
    """Contacts keyed by (professional, phone).

    Contacts are independent of bookings: creating a booking does not
    create a contact, and the same phone under two professionals is two
    unrelated rows.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert_contact(
        self,
        professional_id: str,
        name: str,
        phone: str,
        email: str | None = None,
        notes: str | None = None,
    ) -> Contact:
        """Create a contact or update the one with the same phone.

        If a concurrent request creates the contact first, the write is
        retried as an update of that row.
        """
        normalized = format_phone_international(phone)
        if not normalized:
            raise ValidationError("phone is required", fields=["phone"])
        if not name or not name.strip():
            raise ValidationError("name is required", fields=["name"])

        scope = await TenantScope.resolve(self.session, professional_id)
        try:
            return await self._write_contact(scope, normalized, name.strip(), email, notes)
        except IntegrityError:
            await scope.rollback()
            logger.info(
                "Contact created concurrently, updating instead",
                extra={"professional_id": scope.professional_id},
            )

        try:
            return await self._write_contact(scope, normalized, name.strip(), email, notes)
        except IntegrityError as exc:
            await scope.rollback()
            raise ConflictError(
                "Contact was changed by another request",
                code="concurrent_update",
            ) from exc

    async def _write_contact(
        self,
        scope: TenantScope,
        phone: str,
        name: str,
        email: str | None,
        notes: str | None,
    ) -> Contact:
        contact = await scope.first(scope.select(Contact).where(Contact.phone == phone))

        if contact is None:
            contact = Contact(professional_id=scope.professional_id, phone=phone, name=name)
            self.session.add(contact)
        else:
            contact.name = name

        if email is not None:
            contact.email = email or None
        if notes is not None:
            contact.notes = notes or None

        await scope.commit()
        return contact

    async def get_contact_by_phone(self, professional_id: str, phone: str) -> Contact | None:
        scope = await TenantScope.resolve(self.session, professional_id)
        normalized = format_phone_international(phone)
        if not normalized:
            return None
        return await scope.first(scope.select(Contact).where(Contact.phone == normalized))

    async def list_contacts(self, professional_id: str) -> Sequence[Contact]:
        scope = await TenantScope.resolve(self.session, professional_id)
        return await scope.all(scope.select(Contact).order_by(Contact.name))
