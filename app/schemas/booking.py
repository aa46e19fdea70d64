import re
from datetime import date, datetime
from typing import Any, Dict, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from app.exceptions import ValidationError
from app.models.models import ServiceType, TransferType

# required fields per service category, by wire name
REQUIRED_BY_SERVICE: Dict[str, Tuple[str, ...]] = {
    ServiceType.AIRPORT: ("flightDate", "flightTime", "flightNumber", "transferType"),
    ServiceType.PRIVATE: ("eventDate", "eventTime", "serviceHours"),
}

_PHONE_CHARS = re.compile(r"^\+?[\d\s\-().]+$")


def requires_dropoff(service: Optional[str], transfer_type: Optional[str]) -> bool:
    """Private events always go somewhere else; airport runs only when leaving the airport."""
    if service == ServiceType.PRIVATE:
        return True
    return service == ServiceType.AIRPORT and transfer_type == TransferType.AIRPORT_TO_HOME


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


class Address(CamelModel):
    street_address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(pattern=r"^[A-Za-z]{2}$", description="2-letter state code")
    zip_code: str = Field(pattern=r"^\d{5}$", description="5-digit ZIP code")

    @field_validator("state")
    @classmethod
    def upper_state(cls, v: str) -> str:
        return v.upper()


class BookingIn(CamelModel):
    full_name: str = Field(min_length=1)
    email: EmailStr
    phone: str
    service: Literal["airport", "private"]
    transfer_type: Optional[Literal["home-to-airport", "airport-to-home"]] = None
    flight_number: Optional[str] = None
    flight_date: Optional[date] = None
    flight_time: Optional[str] = None
    pickup_time: Optional[str] = None
    event_date: Optional[date] = None
    event_time: Optional[str] = None
    service_hours: Optional[int] = Field(None, ge=1)
    pickup_location: Address
    dropoff_location: Optional[Address] = None
    passengers: int = Field(1, ge=1, le=14)
    additional_details: str = ""

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str) -> str:
        digits = re.sub(r"\D", "", v)
        if not _PHONE_CHARS.match(v) or not 7 <= len(digits) <= 15:
            raise ValueError("phone number must contain 7 to 15 digits")
        return v


class BookingOut(CamelModel):
    booking_id: str
    status: str
    full_name: str
    email: str
    phone: str
    service: str
    transfer_type: Optional[str] = None
    flight_number: Optional[str] = None
    flight_date: Optional[date] = None
    flight_time: Optional[str] = None
    pickup_time: Optional[str] = None
    event_date: Optional[date] = None
    event_time: Optional[str] = None
    service_hours: Optional[int] = None
    pickup_location: Dict[str, Any]
    dropoff_location: Optional[Dict[str, Any]] = None
    passengers: int
    additional_details: str = ""
    timestamp: datetime
    completed_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, b) -> "BookingOut":
        return cls(
            booking_id=b.id,
            status=b.status,
            full_name=b.full_name,
            email=b.email,
            phone=b.phone,
            service=b.service,
            transfer_type=b.transfer_type,
            flight_number=b.flight_number,
            flight_date=b.flight_date,
            flight_time=b.flight_time,
            pickup_time=b.pickup_time,
            event_date=b.event_date,
            event_time=b.event_time,
            service_hours=b.service_hours,
            pickup_location=b.pickup_location,
            dropoff_location=b.dropoff_location,
            passengers=b.passengers,
            additional_details=b.additional_details or "",
            timestamp=b.created_at,
            completed_at=b.completed_at,
        )


class BookingSubmitted(BookingOut):
    notification_error: Optional[str] = None


class BookingUpdate(CamelModel):
    """PUT body: either a plain status overwrite or a lifecycle action."""

    booking_id: str = Field(min_length=1)
    status: Optional[str] = None
    action: Optional[Literal["complete", "delete"]] = None


def _blank(value: Any) -> bool:
    if isinstance(value, dict):
        return all(_blank(v) for v in value.values())
    return value is None or (isinstance(value, str) and not value.strip())


def _compact(payload: Dict[str, Any]) -> Dict[str, Any]:
    # the booking form posts "" for fields it did not show
    return {k: v for k, v in payload.items() if not _blank(v)}


def _loc(loc) -> str:
    return ".".join(str(p) for p in loc)


def _field_name(alias: str) -> str:
    for name, info in BookingIn.model_fields.items():
        if info.alias == alias:
            return name
    return alias


def _lookup(payload: Dict[str, Any], alias: str) -> Any:
    # callers may send either the camelCase alias or the field name
    if alias in payload:
        return payload[alias]
    return payload.get(_field_name(alias))


def parse_booking(payload: Any) -> BookingIn:
    """Validate a raw submission, collecting every bad field before failing."""
    if not isinstance(payload, dict):
        raise ValidationError({"body": "booking payload must be a JSON object"})

    payload = _compact(payload)
    errors: Dict[str, str] = {}
    booking = None
    try:
        booking = BookingIn.model_validate(payload)
    except PydanticValidationError as exc:
        for err in exc.errors():
            errors.setdefault(_loc(err["loc"]), err["msg"])

    service = _lookup(payload, "service")
    if not isinstance(service, str):
        service = None
    for field in REQUIRED_BY_SERVICE.get(service, ()):
        if _lookup(payload, field) is None and field not in errors:
            errors[field] = "Field required"
    if requires_dropoff(service, _lookup(payload, "transferType")) and _lookup(payload, "dropoffLocation") is None:
        errors.setdefault("dropoffLocation", "Field required")

    if errors:
        raise ValidationError(errors)
    return booking
