"""Notification requests emitted by the booking lifecycle.

Delivery (WhatsApp, email) happens elsewhere. The engine only hands a
NotificationRequest to a dispatcher; enqueue is fire-and-forget from the
booking's point of view and its failures never undo a booking.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from app.booking.temporal import format_time
from app.models.scheduling import Booking, Service
from app.utils.phone import detect_language_from_phone

logger = logging.getLogger(__name__)


class NotificationChannel(str, Enum):
    """Channel a notification should go out on."""

    WHATSAPP = "whatsapp"
    EMAIL = "email"


class NotificationTemplate(str, Enum):
    """Templates known to the delivery collaborator."""

    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_CANCELLED = "booking_cancelled"


class NotificationError(Exception):
    """Raised by a dispatcher that could not accept a request."""

    pass


@dataclass
class NotificationRequest:
    """A queued message for the delivery collaborator.

    Attributes:
        recipient: Phone in international form, or an email address
        template_id: Template to render
        channel: Delivery channel
        data: Structured template data
    """

    recipient: str
    template_id: NotificationTemplate
    channel: NotificationChannel
    data: dict[str, Any] = field(default_factory=dict)


class NotificationDispatcher(ABC):
    """Accepts notification requests for asynchronous delivery."""

    @abstractmethod
    async def enqueue(self, request: NotificationRequest) -> None:
        """Queue a request.

        Raises NotificationError (or anything else) on failure; callers
        log and carry on.
        """
        pass


class LoggingNotificationDispatcher(NotificationDispatcher):
    """Dispatcher that only logs requests.

    Used when no delivery backend is wired in (local runs, tests).
    """

    def __init__(self) -> None:
        self.sent: list[NotificationRequest] = []

    async def enqueue(self, request: NotificationRequest) -> None:
        logger.info(
            f"Queued {request.template_id.value} via {request.channel.value} "
            f"to {request.recipient}"
        )
        self.sent.append(request)


def booking_template_data(booking: Booking, service: Service | None, business_name: str) -> dict[str, Any]:
    """Template data shared by every booking notification."""
    return {
        "booking_id": booking.id,
        "business_name": business_name,
        "client_name": booking.client_name,
        "service_name": service.name if service else None,
        "booking_date": booking.booking_date.isoformat(),
        "start_time": format_time(booking.start_time),
        "end_time": format_time(booking.end_time) if booking.end_time else None,
        "language": detect_language_from_phone(booking.client_phone),
    }


def booking_notifications(
    booking: Booking,
    service: Service | None,
    business_name: str,
    template: NotificationTemplate,
) -> list[NotificationRequest]:
    """Build the requests for one booking event.

    WhatsApp always goes to the client phone; email only when the client
    gave an address.
    """
    data = booking_template_data(booking, service, business_name)
    requests = [
        NotificationRequest(
            recipient=booking.client_phone,
            template_id=template,
            channel=NotificationChannel.WHATSAPP,
            data=data,
        )
    ]
    if booking.client_email:
        requests.append(
            NotificationRequest(
                recipient=booking.client_email,
                template_id=template,
                channel=NotificationChannel.EMAIL,
                data=data,
            )
        )
    return requests
