import asyncio
import logging
from collections.abc import Callable
from typing import Any

import httpx

from .config import config
from .field_mapping import from_persistence, to_persistence
from .models import (
    ApiErrorException,
    Client,
    Court,
    Discipline,
    Employee,
    FormReferenceData,
    NotFoundException,
    Reservation,
    ReservationForm,
    SportSpace,
    TransportErrorException,
    ValidationErrorException,
)

logger = logging.getLogger(__name__)


class DeportivosClient:
    """HTTP client for the sports reservations backend."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        retry_attempts: int | None = None,
        retry_delay: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize HTTP client.

        Args:
            base_url: Backend address, defaults to the configured one
            timeout: Request timeout in seconds
            retry_attempts: Extra attempts for failed read requests
            retry_delay: Base delay between attempts in seconds
            transport: Custom httpx transport (used in tests)
        """
        self.base_url = (base_url or config.base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else config.request_timeout
        self.retry_attempts = max(
            0, retry_attempts if retry_attempts is not None else config.retry_attempts
        )
        self.retry_delay = retry_delay if retry_delay is not None else config.retry_delay
        self.transport = transport
        self.static_headers = {
            "Accept": "application/json",
            "User-Agent": "deportivos-mcp/0.1",
        }

    async def with_retry(self, operation: Callable, *args, **kwargs) -> Any:
        """Execute an operation with retry logic on transport and server errors.

        Args:
            operation: The async function to execute
            *args: Arguments to pass to the operation
            **kwargs: Keyword arguments to pass to the operation

        Returns:
            Result of the operation

        Raises:
            ApiErrorException: If operation fails after retry attempts
        """
        attempt = 0
        while True:
            try:
                return await operation(*args, **kwargs)

            except TransportErrorException as e:
                if attempt >= self.retry_attempts:
                    logger.error(f"All {attempt + 1} attempts failed: {e}")
                    raise
                delay = self.retry_delay * (2**attempt)
                logger.warning(f"Attempt {attempt + 1} failed: {e}. Retrying in {delay}s...")
                await asyncio.sleep(delay)
                attempt += 1

    async def _make_request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
    ) -> Any:
        """Make HTTP request

        Args:
            method: HTTP method
            path: Request path relative to the base URL
            params: URL parameters
            json_data: JSON request body

        Returns:
            Decoded JSON response body (or text if the backend sent no JSON)

        Raises:
            NotFoundException: On a 404 response
            ValidationErrorException: On any other 4xx response
            TransportErrorException: On network failures and 5xx responses
        """
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=self.static_headers,
                    params=params,
                    json=json_data,
                )
        except httpx.RequestError as e:
            raise TransportErrorException(
                code="REQUEST_FAILED",
                message=f"{method} request failed for {url}",
                details={"error": str(e)},
            ) from e

        content_type = response.headers.get("content-type", "").lower()
        if "application/json" in content_type:
            try:
                response_data = response.json()
            except ValueError:
                response_data = response.text
        else:
            response_data = response.text

        if 200 <= response.status_code < 300:
            return response_data

        details = {
            "status": response.status_code,
            "response": response.text[:500],
            "detalle": response_data.get("detalle")
            if isinstance(response_data, dict)
            else None,
        }
        if response.status_code == 404:
            raise NotFoundException(message=f"Not found: {path}", details=details)

        if 400 <= response.status_code < 500:
            raise ValidationErrorException(
                message=_server_message(response_data) or f"HTTP {response.status_code}",
                details=details,
            )

        raise TransportErrorException(
            code="HTTP_ERROR",
            message=f"HTTP {response.status_code}",
            details=details,
        )

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.with_retry(self._make_request, "GET", path, params=params)

    # Reservations

    async def list_reservations(self) -> list[Reservation]:
        """Get all reservations.

        Returns:
            List of reservations
        """
        rows = await self._get("/deportivos/reservas")
        return [
            Reservation.model_validate(from_persistence("reservation", row))
            for row in _as_list(rows)
        ]

    async def fetch_reservation_by_code(self, code: str) -> Reservation | None:
        """Get a reservation by its code.

        Args:
            code: Reservation code

        Returns:
            Reservation if found, None otherwise
        """
        try:
            data = await self._get(f"/deportivos/reservas/{code}")
        except NotFoundException:
            logger.debug(f"Reservation {code} not found")
            return None

        if not isinstance(data, dict):
            return None
        if "encontrada" in data:
            if not data.get("encontrada") or not data.get("reserva"):
                return None
            data = data["reserva"]
        return Reservation.model_validate(from_persistence("reservation", data))

    async def create_reservation(
        self, payload: ReservationForm | Reservation | dict[str, Any]
    ) -> Reservation:
        """Create a reservation.

        Args:
            payload: Reservation values keyed by model field name

        Returns:
            The created reservation as reported by the backend

        Raises:
            ValidationErrorException: If the backend rejects the payload
            TransportErrorException: On network or server failures
        """
        values = payload if isinstance(payload, dict) else payload.model_dump()
        body = to_persistence("reservation", values)
        # Not retried: a repeated POST could create the reservation twice
        data = await self._make_request("POST", "/deportivos/reservas", json_data=body)

        record = data.get("reserva", data) if isinstance(data, dict) else {}
        merged = {**body, **record}
        return Reservation.model_validate(from_persistence("reservation", merged))

    # Facilities, courts and disciplines

    async def list_facilities(self) -> list[SportSpace]:
        """Get all sports facilities."""
        rows = await self._get("/deportivos/espacios")
        return [
            SportSpace.model_validate(from_persistence("space", row))
            for row in _as_list(rows)
        ]

    async def fetch_facility(self, code: str) -> SportSpace | None:
        """Get a sports facility by its code.

        Args:
            code: Facility code

        Returns:
            Facility if found, None otherwise
        """
        try:
            data = await self._get(f"/deportivos/espacios/{code}")
        except NotFoundException:
            logger.debug(f"Facility {code} not found")
            return None
        if not isinstance(data, dict) or not data:
            return None
        return SportSpace.model_validate(from_persistence("space", data))

    async def create_facility(self, space: SportSpace | dict[str, Any]) -> SportSpace:
        """Create a sports facility."""
        values = space if isinstance(space, dict) else space.model_dump()
        body = to_persistence("space", values)
        data = await self._make_request("POST", "/deportivos/espacios", json_data=body)

        record = data.get("espacio", data) if isinstance(data, dict) else {}
        return SportSpace.model_validate(
            from_persistence("space", {**body, **record})
        )

    async def fetch_form_reference_data(self) -> FormReferenceData:
        """Load clients, employees, facilities, courts and disciplines at once."""
        data = await self._get("/deportivos/datos-formulario")
        if not isinstance(data, dict):
            data = {}
        return FormReferenceData(
            clients=tuple(
                Client.model_validate(from_persistence("client", row))
                for row in _as_list(data.get("clientes"))
            ),
            employees=tuple(
                Employee.model_validate(from_persistence("employee", row))
                for row in _as_list(data.get("empleados"))
            ),
            spaces=tuple(
                SportSpace.model_validate(from_persistence("space", row))
                for row in _as_list(data.get("espacios"))
            ),
            courts=tuple(
                Court.model_validate(from_persistence("court", row))
                for row in _as_list(data.get("canchas"))
            ),
            disciplines=tuple(
                Discipline.model_validate(from_persistence("discipline", row))
                for row in _as_list(data.get("disciplinas"))
            ),
        )

    async def fetch_courts_for_facility(self, space_code: str) -> list[Court]:
        """Get courts of a facility. Failures degrade to an empty list.

        Args:
            space_code: Facility code

        Returns:
            List of courts
        """
        try:
            rows = await self._get(f"/deportivos/canchas/{space_code}")
        except ApiErrorException as e:
            logger.error(f"Error getting courts for facility {space_code}: {e}")
            return []
        return [
            Court.model_validate(from_persistence("court", row))
            for row in _as_list(rows)
        ]

    async def fetch_disciplines_for_court(self, court_code: str) -> list[Discipline]:
        """Get disciplines valid for a court.

        Args:
            court_code: Court code

        Returns:
            List of disciplines
        """
        rows = await self._get(f"/deportivos/disciplinas/{court_code}")
        return [
            Discipline.model_validate(from_persistence("discipline", row))
            for row in _as_list(rows)
        ]

    # Clients

    async def list_clients(self) -> list[Client]:
        """Get all clients."""
        rows = await self._get("/clientes")
        return [
            Client.model_validate(from_persistence("client", row))
            for row in _as_list(rows)
        ]

    async def create_client(self, client: Client | dict[str, Any]) -> str:
        """Create a client (person and client records).

        Returns:
            Confirmation message from the backend
        """
        values = client if isinstance(client, dict) else client.model_dump()
        data = await self._make_request(
            "POST", "/clientes", json_data=to_persistence("client", values)
        )
        return _backend_message(data, "Cliente agregado correctamente")

    async def update_client(self, ci: str, client: Client | dict[str, Any]) -> str:
        """Update a client's person and client records.

        Returns:
            Confirmation message from the backend
        """
        values = client if isinstance(client, dict) else client.model_dump()
        body = to_persistence("client", values)
        body.pop("ci", None)
        data = await self._make_request("PUT", f"/clientes/{ci}", json_data=body)
        return _backend_message(data, "Cliente actualizado correctamente")

    async def delete_client(self, ci: str) -> str:
        """Delete a client.

        Returns:
            Confirmation message from the backend
        """
        data = await self._make_request("DELETE", f"/clientes/{ci}")
        return _backend_message(data, "Cliente eliminado correctamente")


def _as_list(rows: Any) -> list[dict[str, Any]]:
    if not isinstance(rows, list):
        return []
    return [row for row in rows if isinstance(row, dict)]


def _server_message(data: Any) -> str | None:
    """Extract the human readable message of an error body."""
    if isinstance(data, dict):
        for key in ("detalle", "error", "mensaje", "message"):
            if data.get(key):
                return str(data[key])
    return None


def _backend_message(data: Any, default: str) -> str:
    if isinstance(data, dict) and data.get("mensaje"):
        return str(data["mensaje"])
    return default
