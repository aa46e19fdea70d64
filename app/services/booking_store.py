from typing import Any, Dict, List, Optional

from sqlalchemy import delete as sa_delete
from sqlalchemy import select as sa_select
from sqlalchemy import update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import unavailable_on_error
from app.models.models import Booking

_gateway_call = unavailable_on_error("Booking database is unavailable")


class BookingStore:
    """Persistence gateway over the ``bookings`` table.

    Every call runs in its own short transaction so a request never holds a
    connection across a notification round-trip.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    @_gateway_call
    async def insert_one(self, booking: Booking) -> Booking:
        async with self.session.begin():
            self.session.add(booking)
        return booking

    @_gateway_call
    async def find(self, status: Optional[str] = None) -> List[Booking]:
        stmt = sa_select(Booking).order_by(Booking.created_at.desc())
        if status:
            stmt = stmt.where(Booking.status == status)
        async with self.session.begin():
            res = await self.session.execute(stmt)
            return list(res.scalars().all())

    @_gateway_call
    async def find_one(self, booking_id: str) -> Optional[Booking]:
        stmt = sa_select(Booking).where(Booking.id == booking_id).execution_options(populate_existing=True)
        async with self.session.begin():
            res = await self.session.execute(stmt)
            return res.scalars().first()

    @_gateway_call
    async def update_one(self, booking_id: str, values: Dict[str, Any], expected_status: Optional[str] = None, on_match=None) -> int:
        """Conditional single-row update; returns the number of rows matched.

        ``on_match`` is awaited with the session inside the same transaction
        when a row matched (used for the audit trail).
        """
        stmt = sa_update(Booking).where(Booking.id == booking_id).values(**values)
        if expected_status is not None:
            stmt = stmt.where(Booking.status == expected_status)
        async with self.session.begin():
            res = await self.session.execute(stmt.execution_options(synchronize_session=False))
            if res.rowcount and on_match is not None:
                await on_match(self.session)
        return res.rowcount

    @_gateway_call
    async def delete_one(self, booking_id: str, expected_status: Optional[str] = None, on_match=None) -> int:
        stmt = sa_delete(Booking).where(Booking.id == booking_id)
        if expected_status is not None:
            stmt = stmt.where(Booking.status == expected_status)
        async with self.session.begin():
            res = await self.session.execute(stmt.execution_options(synchronize_session=False))
            if res.rowcount and on_match is not None:
                await on_match(self.session)
        return res.rowcount

    @_gateway_call
    async def delete_all(self) -> int:
        async with self.session.begin():
            res = await self.session.execute(sa_delete(Booking))
        return res.rowcount
