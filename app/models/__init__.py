from app.db.base import Base
from .models import *

__all__ = [
    "Base",
    "User",
    "Booking",
    "BookingStatus",
    "ServiceType",
    "TransferType",
    "AuditLog",
]
