"""Data models for Deportivos MCP server."""

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .config import config


class ReservationStatus(str, Enum):
    """Reservation status values understood by the backend."""

    CONFIRMED = "CONFIRMADA"
    PENDING = "PENDIENTE"
    CANCELLED = "CANCELADA"


class Person(BaseModel):
    """Represents a person, the shared base of clients and employees."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    ci: str = Field(..., description="National identity number")
    name: str = Field(..., description="First name")
    surname: str | None = Field(None, description="Last name")
    phone: str | None = Field(None, description="Phone number")
    birth_date: str | None = Field(None, description="Birth date in YYYY-MM-DD format")
    sex: str | None = Field(None, description="Sex")
    nationality: str | None = Field(None, description="Nationality")

    @field_validator("birth_date", mode="before")
    @classmethod
    def normalize_birth_date(cls, value):
        # The backend stores an empty birth date as NULL
        if value == "":
            return None
        if isinstance(value, str) and "T" in value:
            return value.split("T", 1)[0]
        return value

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.name, self.surname) if part)


class Client(Person):
    """Represents a client of the sports facilities."""

    category: str | None = Field(None, description="Client category")
    email: str | None = Field(None, description="Contact email")


class Employee(Person):
    """Represents an employee authorizing reservations."""


class SportSpace(BaseModel):
    """Represents a sports facility containing courts."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    code: str = Field(..., description="Facility code")
    name: str = Field(..., description="Facility name")
    location: str | None = Field(None, description="Facility location")
    capacity: int | None = Field(None, description="Maximum capacity")
    status: str | None = Field(None, description="Facility status")
    description: str | None = Field(None, description="Free text description")
    court_count: int | None = Field(None, description="Number of courts")
    reservation_count: int | None = Field(None, description="Number of reservations")
    total_paid: str | None = Field(None, description="Total amount paid")


class Court(BaseModel):
    """Represents a bookable court within a facility."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    code: str = Field(..., description="Court code")
    space_code: str = Field(..., description="Code of the owning facility")
    name: str | None = Field(None, description="Court name")
    surface: str | None = Field(None, description="Surface type")
    covered: bool | None = Field(None, description="Whether the court is covered")


class Discipline(BaseModel):
    """Represents a sport discipline valid for some courts."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    code: str = Field(..., description="Discipline code")
    name: str = Field(..., description="Discipline name")


def _normalize_date(value):
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    return value


def _normalize_time(value):
    # Backend returns TIME columns as HH:MM:SS
    if isinstance(value, str) and len(value) > 5 and value[2] == ":":
        return value[:5]
    return value


class Reservation(BaseModel):
    """Represents a court reservation."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    code: str | None = Field(None, description="Reservation code")
    client_id: str = Field(..., description="Client national identity number")
    employee_id: str = Field(..., description="Authorizing employee identity number")
    court_code: str = Field(..., description="Court code")
    discipline_code: str = Field(..., description="Discipline code")
    date: str = Field(..., description="Date in YYYY-MM-DD format")
    start_time: str = Field(..., description="Start time in HH:MM format")
    end_time: str = Field(..., description="End time in HH:MM format")
    total_amount: str = Field(..., description="Total amount")
    status: str = Field(
        ReservationStatus.CONFIRMED.value, description="Reservation status"
    )
    space_code: str | None = Field(None, description="Facility code of the court")
    client_name: str | None = Field(None, description="Client first name")
    client_surname: str | None = Field(None, description="Client last name")
    space_name: str | None = Field(None, description="Facility name")

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, value):
        return _normalize_date(value)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def normalize_times(cls, value):
        return _normalize_time(value)

    @property
    def client_full_name(self) -> str:
        return " ".join(
            part for part in (self.client_name, self.client_surname) if part
        )


class FormReferenceData(BaseModel):
    """Reference data loaded once per reservation form session."""

    model_config = ConfigDict(frozen=True)

    clients: tuple[Client, ...] = ()
    employees: tuple[Employee, ...] = ()
    spaces: tuple[SportSpace, ...] = ()
    courts: tuple[Court, ...] = ()
    disciplines: tuple[Discipline, ...] = ()


class ReservationForm(BaseModel):
    """Editable state of the reservation form. Every value is held as text."""

    model_config = ConfigDict(validate_assignment=True, coerce_numbers_to_str=True)

    client_id: str = ""
    employee_id: str = ""
    space_code: str = ""
    court_code: str = ""
    discipline_code: str = ""
    date: str = ""
    start_time: str = ""
    end_time: str = ""
    total_amount: str = ""
    status: str = ReservationStatus.CONFIRMED.value

    @classmethod
    def defaults(cls) -> "ReservationForm":
        """Create a blank form dated today with the configured defaults."""
        return cls(
            date=date.today().isoformat(),
            start_time=config.default_start_time,
            end_time=config.default_end_time,
            total_amount=config.default_amount,
            status=ReservationStatus.CONFIRMED.value,
        )

    def missing_required(self) -> list[str]:
        """Names of required selections that are still empty."""
        required = ("client_id", "employee_id", "court_code", "discipline_code")
        return [name for name in required if not getattr(self, name)]


class ApiError(BaseModel):
    """Represents an API error response."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Error message")
    details: dict | None = Field(None, description="Additional error details")


class ApiErrorException(Exception):
    """Exception class for API errors that uses ApiError model for data."""

    def __init__(self, code: str, message: str, details: dict | None = None):
        """Initialize the exception with error details."""
        super().__init__(f"[{code}] {message}")
        self.error = ApiError(code=code, message=message, details=details)
        self.code = code
        self.message = message
        self.details = details


class NotFoundException(ApiErrorException):
    """The requested record does not exist. An expected outcome, not a failure."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(code="NOT_FOUND", message=message, details=details)


class ValidationErrorException(ApiErrorException):
    """Missing form fields, or a payload rejected by the backend."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(code="VALIDATION_ERROR", message=message, details=details)


class TransportErrorException(ApiErrorException):
    """Network failure or server-side error."""
