from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Integer,
    JSON,
    String,
    Text,
    Index,
)
from sqlalchemy.sql import func

from app.db.base import Base


class BookingStatus:
    ACTIVE = "active"
    COMPLETED = "completed"

    ALL = (ACTIVE, COMPLETED)


class ServiceType:
    AIRPORT = "airport"
    PRIVATE = "private"

    ALL = (AIRPORT, PRIVATE)


class TransferType:
    HOME_TO_AIRPORT = "home-to-airport"
    AIRPORT_TO_HOME = "airport-to-home"

    ALL = (HOME_TO_AIRPORT, AIRPORT_TO_HOME)


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    username = Column(String(150), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, default="admin")
    # password reset: 6-digit code plus absolute expiry, cleared once used
    reset_code = Column(String(6), nullable=True)
    reset_code_expires = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class Booking(Base):
    __tablename__ = "bookings"
    id = Column(String(32), primary_key=True)
    status = Column(String(32), nullable=False, default=BookingStatus.ACTIVE)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=False)
    service = Column(String(32), nullable=False)
    transfer_type = Column(String(32), nullable=True)
    flight_number = Column(String(32), nullable=True)
    flight_date = Column(Date, nullable=True)
    flight_time = Column(String(16), nullable=True)
    pickup_time = Column(String(16), nullable=True)
    event_date = Column(Date, nullable=True)
    event_time = Column(String(16), nullable=True)
    service_hours = Column(Integer, nullable=True)
    # addresses are stored as documents: {streetAddress, city, state, zipCode}
    pickup_location = Column(JSON, nullable=False)
    dropoff_location = Column(JSON, nullable=True)
    passengers = Column(Integer, nullable=False, default=1)
    additional_details = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("ix_bookings_status_created_at", "status", "created_at"),)


class AuditLog(Base):
    __tablename__ = "audit_logs"
    id = Column(Integer, primary_key=True)
    actor = Column(String(150), nullable=True, index=True)
    action = Column(String(255), nullable=False)
    object_type = Column(String(128), nullable=True)
    object_id = Column(String(128), nullable=True)
    detail = Column(JSON, nullable=True)
    ip_address = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
