from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import require_session
from app.db.session import get_session
from app.exceptions import ValidationError
from app.models.models import BookingStatus
from app.schemas.booking import BookingOut, BookingSubmitted, BookingUpdate
from app.services.booking_service import BookingService
from app.services.booking_store import BookingStore

router = APIRouter(tags=["bookings"])


def get_booking_service(request: Request, db: AsyncSession = Depends(get_session)) -> BookingService:
    return BookingService(BookingStore(db), notifications=request.app.state.notifications)


@router.post("", response_model=BookingSubmitted, status_code=status.HTTP_201_CREATED)
async def submit_booking(payload: Dict[str, Any] = Body(...), svc: BookingService = Depends(get_booking_service)):
    """Public booking form endpoint. Stores first, then texts the dispatcher."""
    result = await svc.submit(payload)
    out = BookingOut.from_record(result.booking)
    return BookingSubmitted(**out.model_dump(), notification_error=result.notification_error)


@router.get("", response_model=List[BookingOut])
async def list_bookings(
    _subject: str = Depends(require_session),
    status_filter: Optional[str] = Query(BookingStatus.ACTIVE, alias="status"),
    svc: BookingService = Depends(get_booking_service),
):
    bookings = await svc.list_bookings(status_filter)
    return [BookingOut.from_record(b) for b in bookings]


@router.put("")
async def update_booking(req: BookingUpdate, subject: str = Depends(require_session), svc: BookingService = Depends(get_booking_service)):
    if (req.status is None) == (req.action is None):
        raise ValidationError({"body": "provide exactly one of 'status' or 'action'"})

    if req.action == "delete":
        await svc.delete(req.booking_id, actor=subject)
        return {"success": True, "bookingId": req.booking_id, "deleted": True}

    if req.action == "complete":
        booking = await svc.complete(req.booking_id, actor=subject)
    else:
        booking = await svc.update_status(req.booking_id, req.status, actor=subject)
    return {"success": True, "data": BookingOut.from_record(booking).model_dump(by_alias=True, mode="json")}
