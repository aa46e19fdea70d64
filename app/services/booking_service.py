import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional

from app.exceptions import NotFoundError, NotificationFailed, ValidationError
from app.metrics import BOOKING_TRANSITIONS, BOOKINGS_SUBMITTED
from app.models.models import Booking, BookingStatus
from app.schemas.booking import parse_booking
from app.services.audit import audit_hook
from app.services.booking_store import BookingStore

logger = logging.getLogger(__name__)


def new_booking_id() -> str:
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SubmitResult:
    booking: Booking
    notification_error: Optional[str] = None


class BookingService:
    """Booking lifecycle: submit, list, complete, delete, overwrite status."""

    def __init__(self, store: BookingStore, notifications=None):
        self.store = store
        self.notifications = notifications

    async def submit(self, payload: Any) -> SubmitResult:
        data = parse_booking(payload)
        booking = Booking(
            id=new_booking_id(),
            status=BookingStatus.ACTIVE,
            full_name=data.full_name,
            email=str(data.email),
            phone=data.phone,
            service=data.service,
            transfer_type=data.transfer_type,
            flight_number=data.flight_number,
            flight_date=data.flight_date,
            flight_time=data.flight_time,
            pickup_time=data.pickup_time,
            event_date=data.event_date,
            event_time=data.event_time,
            service_hours=data.service_hours,
            pickup_location=data.pickup_location.model_dump(by_alias=True),
            dropoff_location=data.dropoff_location.model_dump(by_alias=True) if data.dropoff_location else None,
            passengers=data.passengers,
            additional_details=data.additional_details,
            created_at=_now(),
        )
        await self.store.insert_one(booking)
        BOOKINGS_SUBMITTED.labels(service=booking.service).inc()
        logger.info("Booking %s stored (service=%s)", booking.id, booking.service)

        result = SubmitResult(booking=booking)
        if self.notifications is not None:
            try:
                await self.notifications.send_booking_notification(booking)
            except NotificationFailed as exc:
                # the booking is already stored; report, don't fail
                logger.warning("Booking %s saved but notification failed: %s", booking.id, exc.detail)
                result.notification_error = exc.detail
        return result

    async def list_bookings(self, status: Optional[str] = BookingStatus.ACTIVE) -> List[Booking]:
        status = status or BookingStatus.ACTIVE
        if status not in BookingStatus.ALL:
            raise ValidationError({"status": f"must be one of {', '.join(BookingStatus.ALL)}"})
        return await self.store.find(status)

    async def complete(self, booking_id: str, actor: Optional[str] = None) -> Booking:
        completed_at = _now()
        matched = await self.store.update_one(
            booking_id,
            {"status": BookingStatus.COMPLETED, "completed_at": completed_at},
            expected_status=BookingStatus.ACTIVE,
            on_match=audit_hook(actor, "complete_booking", "booking", booking_id),
        )
        if not matched:
            raise NotFoundError(f"No active booking with id {booking_id}")
        BOOKING_TRANSITIONS.labels(action="complete").inc()
        logger.info("Booking %s completed", booking_id)
        return await self._get(booking_id)

    async def transition(self, booking_id: str, target: str, actor: Optional[str] = None) -> Booking:
        if target != BookingStatus.COMPLETED:
            raise ValidationError({"status": "only the 'completed' transition is defined"})
        return await self.complete(booking_id, actor=actor)

    async def delete(self, booking_id: str, actor: Optional[str] = None) -> None:
        deleted = await self.store.delete_one(
            booking_id,
            expected_status=BookingStatus.ACTIVE,
            on_match=audit_hook(actor, "delete_booking", "booking", booking_id),
        )
        if not deleted:
            raise NotFoundError(f"No active booking with id {booking_id}")
        BOOKING_TRANSITIONS.labels(action="delete").inc()
        logger.info("Booking %s deleted", booking_id)

    async def update_status(self, booking_id: str, new_status: str, actor: Optional[str] = None) -> Booking:
        """Overwrite status regardless of the current one.

        Restricted to known statuses; ``completed_at`` follows the status so a
        record can never be completed without a completion time.
        """
        if new_status not in BookingStatus.ALL:
            raise ValidationError({"status": f"must be one of {', '.join(BookingStatus.ALL)}"})
        values = {"status": new_status}
        values["completed_at"] = _now() if new_status == BookingStatus.COMPLETED else None
        matched = await self.store.update_one(
            booking_id,
            values,
            on_match=audit_hook(actor, "update_booking_status", "booking", booking_id, {"status": new_status}),
        )
        if not matched:
            raise NotFoundError(f"No booking with id {booking_id}")
        BOOKING_TRANSITIONS.labels(action="update_status").inc()
        return await self._get(booking_id)

    async def _get(self, booking_id: str) -> Booking:
        booking = await self.store.find_one(booking_id)
        if booking is None:
            raise NotFoundError(f"No booking with id {booking_id}")
        return booking
