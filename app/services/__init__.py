"""Business logic services."""

from app.services.catalog import CatalogService
from app.services.contacts import ContactService
from app.services.scheduling import ClientInfo, SchedulingService, SlotSuggestion
from app.services.tenant_scope import TenantScope

__all__ = [
    "CatalogService",
    "ContactService",
    "ClientInfo",
    "SchedulingService",
    "SlotSuggestion",
    "TenantScope",
]
