"""Reservation form session: reference data, form state and its workflows."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError

from .client import DeportivosClient
from .lookup import DebouncedLookupEngine
from .models import (
    ApiErrorException,
    FormReferenceData,
    Reservation,
    ReservationForm,
    ValidationErrorException,
)
from .selection import CascadingSelectionResolver
from .submission import FormSubmissionWorkflow, SubmissionResult

logger = logging.getLogger(__name__)

# Receives ("found" | "not_found" | "created", payload)
FormListener = Callable[[str, dict[str, Any]], Awaitable[None]]


class ReservationFormSession:
    """One reservation form, from loading its reference data to submitting it.

    Reference data is loaded once by ``open`` and never refreshed. Facility,
    court and discipline edits go through the selection resolver, code edits
    through the lookup engine. Settled lookups and created reservations are
    reported to ``listener`` when one is set.
    """

    def __init__(
        self,
        client: DeportivosClient | None = None,
        debounce_ms: int | None = None,
        listener: FormListener | None = None,
    ):
        """Initialize form session.

        Args:
            client: Gateway to the backend
            debounce_ms: Quiet period before a code lookup, in milliseconds
            listener: Called with lookup and creation events
        """
        self.client = client or DeportivosClient()
        self.listener = listener
        self.reference = FormReferenceData()
        self.form = ReservationForm.defaults()
        self.error = ""
        self.success = ""
        self.loading = False
        self.resolver = CascadingSelectionResolver(self.client, self.reference.courts)
        self.lookup = DebouncedLookupEngine(
            self.client,
            apply_reservation=self._apply_reservation,
            set_message=self._set_success,
            debounce_ms=debounce_ms,
            on_result=self._lookup_settled,
        )
        self.submission = FormSubmissionWorkflow(self.client)

    async def open(self) -> bool:
        """Load the reference data of the form.

        Returns:
            True if the reference data was loaded
        """
        try:
            reference = await self.client.fetch_form_reference_data()
        except ApiErrorException as e:
            logger.error(f"Error loading form reference data: {e}")
            self.error = f"Error al cargar los datos del sistema: {e.message}"
            return False
        except ValidationError as e:
            logger.error(f"Malformed form reference data: {e}")
            self.error = "Error al cargar los datos del sistema: datos inválidos"
            return False

        self.reference = reference
        self.resolver = CascadingSelectionResolver(self.client, reference.courts)
        logger.info(
            f"Form data loaded: {len(reference.spaces)} spaces, {len(reference.courts)} courts"
        )
        return True

    async def set_field(self, name: str, value: Any) -> bool:
        """Edit one form field.

        Args:
            name: ReservationForm field name
            value: New value, stored as text

        Returns:
            False if the edit was rejected; the reason is left in ``error``
        """
        value = "" if value is None else str(value)
        try:
            if name not in ReservationForm.model_fields:
                raise ValidationErrorException(f"Campo desconocido: {name}")
            if self.lookup.locked:
                raise ValidationErrorException(
                    "El formulario muestra una reserva existente. "
                    "Modifique el código de búsqueda para editarlo."
                )

            if name == "space_code":
                self.resolver.select_facility(value)
            elif name == "court_code":
                await self.resolver.select_court(value)
            elif name == "discipline_code":
                self.resolver.select_discipline(value)
            else:
                setattr(self.form, name, value)
        except ValidationErrorException as e:
            self.error = e.message
            return False

        self._sync_selections()
        self.error = ""
        return True

    def set_search_code(self, value: str) -> bool:
        """Edit the reservation code field. Non-digit input is rejected."""
        return self.lookup.set_code(value)

    async def search_now(self) -> bool:
        return await self.lookup.search_now()

    async def submit(self) -> SubmissionResult:
        """Submit the form. On success the form is reset, on failure it is kept."""
        self.loading = True
        try:
            result = await self.submission.submit(self.form)
        finally:
            self.loading = False

        if result.success:
            self.clear()
            self.success = result.message
            if result.reservation is not None:
                await self._emit("created", result.reservation.model_dump())
        else:
            self.error = result.message
        return result

    def clear(self) -> None:
        """Reset every field to its default and forget the looked up reservation."""
        self.form = ReservationForm.defaults()
        self.lookup.reset()
        self.resolver.reset()
        self.error = ""
        self.success = ""

    async def close(self) -> None:
        await self.lookup.close()
        self.resolver.reset()

    def snapshot(self) -> dict[str, Any]:
        """Current state of the form for display."""
        return {
            "form": self.form.model_dump(),
            "search_code": self.lookup.code,
            "lookup_state": self.lookup.state.kind,
            "locked": self.lookup.locked,
            "filtered_courts": [court.model_dump() for court in self.resolver.filtered_courts],
            "disciplines": [d.model_dump() for d in self.resolver.disciplines],
            "no_courts_available": self.resolver.no_courts_available,
            "court_selectable": self.resolver.court_selectable,
            "discipline_selectable": self.resolver.discipline_selectable,
            "error": self.error or self.resolver.error,
            "success": self.success,
            "loading": self.loading,
        }

    def _sync_selections(self) -> None:
        self.form.space_code = self.resolver.selected_facility
        self.form.court_code = self.resolver.selected_court
        self.form.discipline_code = self.resolver.selected_discipline

    def _set_success(self, message: str) -> None:
        self.success = message

    async def _emit(self, action: str, payload: dict[str, Any]) -> None:
        if self.listener is not None:
            await self.listener(action, payload)

    async def _lookup_settled(self, code: str, reservation: Reservation | None) -> None:
        if reservation is None:
            await self._emit("not_found", {"code": code})
        else:
            await self._emit("found", reservation.model_dump())

    async def _apply_reservation(self, reservation: Reservation) -> None:
        space_code = reservation.space_code or self.resolver.facility_of(
            reservation.court_code
        )
        self.form = ReservationForm(
            client_id=reservation.client_id,
            employee_id=reservation.employee_id,
            space_code=space_code,
            court_code=reservation.court_code,
            discipline_code=reservation.discipline_code,
            date=reservation.date,
            start_time=reservation.start_time,
            end_time=reservation.end_time,
            total_amount=reservation.total_amount,
            status=reservation.status,
        )
        await self.resolver.bind(
            space_code, reservation.court_code, reservation.discipline_code
        )
        self._sync_selections()
