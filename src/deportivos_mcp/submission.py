"""Reservation form submission."""

import logging

from pydantic import BaseModel, Field

from .client import DeportivosClient
from .models import (
    ApiErrorException,
    Reservation,
    ReservationForm,
    ValidationErrorException,
)
from .utils import validate_amount, validate_date, validate_time_range

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Complete todos los campos obligatorios"
GENERIC_FAILURE_MESSAGE = "Error al crear la reserva deportiva"


class SubmissionResult(BaseModel):
    """Outcome of a reservation form submission."""

    success: bool = Field(..., description="Whether the reservation was created")
    message: str = Field(..., description="Message to show to the user")
    reservation: Reservation | None = Field(None, description="Created reservation")


class FormSubmissionWorkflow:
    """Validates the reservation form and creates the reservation."""

    def __init__(self, client: DeportivosClient):
        self.client = client

    def validate(self, form: ReservationForm) -> None:
        """Check the form before it is sent.

        Raises:
            ValidationErrorException: With the message to show to the user
        """
        missing = form.missing_required()
        if missing:
            raise ValidationErrorException(
                MISSING_FIELDS_MESSAGE, details={"missing": missing}
            )
        if not validate_date(form.date):
            raise ValidationErrorException("Fecha inválida. Use el formato YYYY-MM-DD.")
        if not validate_time_range(form.start_time, form.end_time):
            raise ValidationErrorException(
                "Horario inválido. Use HH:MM y una hora de fin posterior a la de inicio."
            )
        if not validate_amount(form.total_amount):
            raise ValidationErrorException("Monto total inválido.")

    async def submit(self, form: ReservationForm) -> SubmissionResult:
        """Validate and create the reservation.

        The form itself is never modified here.

        Args:
            form: Current form state

        Returns:
            Submission result with the message to show
        """
        try:
            self.validate(form)
        except ValidationErrorException as e:
            logger.debug(f"Reservation form rejected: {e.message}")
            return SubmissionResult(success=False, message=e.message)

        try:
            reservation = await self.client.create_reservation(form)
        except ApiErrorException as e:
            logger.error(f"Error creating reservation: {e}")
            detail = (e.details or {}).get("detalle")
            return SubmissionResult(
                success=False, message=detail or GENERIC_FAILURE_MESSAGE
            )

        logger.info(f"Reservation {reservation.code} created")
        return SubmissionResult(
            success=True,
            message=f"Reserva deportiva #{reservation.code} creada exitosamente",
            reservation=reservation,
        )
