"""Shared test fixtures."""

import asyncio

import httpx
import pytest

from deportivos_mcp.client import DeportivosClient
from deportivos_mcp.models import (
    Court,
    Discipline,
    FormReferenceData,
    Reservation,
    SportSpace,
    TransportErrorException,
    ValidationErrorException,
)


def make_reservation(**overrides) -> Reservation:
    values = {
        "code": "5",
        "client_id": "10",
        "employee_id": "20",
        "court_code": "1",
        "discipline_code": "3",
        "date": "2025-09-24",
        "start_time": "09:00",
        "end_time": "11:00",
        "total_amount": "150.00",
        "status": "CONFIRMADA",
        "space_code": "A",
        "client_name": "Ana",
        "client_surname": "Pérez",
        "space_name": "Coliseo Norte",
    }
    values.update(overrides)
    return Reservation(**values)


class FakeGateway:
    """In-memory stand-in for DeportivosClient used by the workflow tests."""

    def __init__(self):
        self.reference = FormReferenceData(
            spaces=(
                SportSpace(code="A", name="Coliseo Norte"),
                SportSpace(code="B", name="Polideportivo Sur"),
                SportSpace(code="C", name="Cancha Vacía"),
            ),
            courts=(
                Court(code="1", space_code="A"),
                Court(code="2", space_code="B"),
                Court(code="4", space_code="A"),
            ),
        )
        self.disciplines = {
            "1": [Discipline(code="3", name="Fútbol"), Discipline(code="7", name="Básquet")],
            "2": [Discipline(code="8", name="Vóley")],
            "4": [Discipline(code="9", name="Tenis")],
        }
        self.reservations: dict[str, Reservation] = {"5": make_reservation()}
        self.lookup_calls: list[str] = []
        self.discipline_calls: list[str] = []
        self.created: list[dict] = []
        self.lookup_error: Exception | None = None
        self.discipline_error: Exception | None = None
        self.create_error: Exception | None = None
        self.reference_error: Exception | None = None
        # court code -> event the discipline fetch waits on
        self.discipline_gates: dict[str, asyncio.Event] = {}
        self.lookup_gate: asyncio.Event | None = None
        self.next_code = 42

    async def fetch_form_reference_data(self):
        if self.reference_error:
            raise self.reference_error
        return self.reference

    async def fetch_disciplines_for_court(self, court_code):
        self.discipline_calls.append(court_code)
        gate = self.discipline_gates.get(court_code)
        if gate is not None:
            await gate.wait()
        if self.discipline_error:
            raise self.discipline_error
        return list(self.disciplines.get(court_code, []))

    async def fetch_reservation_by_code(self, code):
        self.lookup_calls.append(code)
        if self.lookup_gate is not None:
            await self.lookup_gate.wait()
        if self.lookup_error:
            raise self.lookup_error
        return self.reservations.get(code)

    async def create_reservation(self, payload):
        values = payload.model_dump()
        self.created.append(values)
        if self.create_error:
            raise self.create_error
        return Reservation(**{**values, "code": str(self.next_code)})


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def transport_error():
    return TransportErrorException(code="REQUEST_FAILED", message="connection refused")


@pytest.fixture
def rejected_error():
    return ValidationErrorException(
        "La cancha no está disponible",
        details={"detalle": "La cancha no está disponible en ese horario"},
    )


def mock_client(handler, **kwargs) -> DeportivosClient:
    """DeportivosClient whose requests are answered by handler."""
    kwargs.setdefault("retry_attempts", 0)
    kwargs.setdefault("retry_delay", 0)
    return DeportivosClient(
        base_url="http://backend.test",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )
