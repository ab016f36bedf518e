from typing import Any

from ..client import DeportivosClient
from ..models import ApiErrorException, ReservationForm
from ..submission import FormSubmissionWorkflow
from ..utils import format_date_for_display


class ReservationsEndpoint:
    """
    Endpoint for reservation related operations.
    Reservations can be listed, looked up by code and created, never modified.
    """

    def __init__(self, client: DeportivosClient | None = None):
        """Initialize reservations endpoint."""
        self.client = client or DeportivosClient()
        self.submission = FormSubmissionWorkflow(self.client)

    async def get_reservations(self) -> list[dict[str, Any]]:
        """Get all reservations.

        Returns:
            List of reservation dictionaries
        """
        reservations = await self.client.list_reservations()
        return [reservation.model_dump() for reservation in reservations]

    async def get_reservation_details(self, code: str) -> dict[str, Any]:
        """Get details of a reservation.

        Args:
            code: Reservation code

        Returns:
            Reservation details dictionary
        """
        try:
            reservation = await self.client.fetch_reservation_by_code(code)
            if reservation:
                return {
                    "success": True,
                    "message": f"Reserva #{reservation.code} del {format_date_for_display(reservation.date)}",
                    "reservation": reservation.model_dump(),
                }
            return {
                "success": False,
                "message": f"Reservation {code} not found.",
            }

        except ApiErrorException as e:
            return {
                "success": False,
                "message": f"Get details for reservation {code} failed: {e.message}",
            }
        except Exception as e:
            return {
                "success": False,
                "message": f"Unexpected error while getting reservation details: {str(e)}",
            }

    async def make_reservation(
        self,
        client_id: str,
        employee_id: str,
        court_code: str,
        discipline_code: str,
        date: str,
        start_time: str,
        end_time: str,
        total_amount: str,
        status: str,
    ) -> dict[str, Any]:
        """Create a reservation.

        Args:
            client_id: Client national identity number
            employee_id: Authorizing employee identity number
            court_code: Court code
            discipline_code: Discipline code, valid for the court
            date: Date in YYYY-MM-DD format
            start_time: Start time in HH:MM format
            end_time: End time in HH:MM format
            total_amount: Total amount
            status: Reservation status

        Returns:
            Result dictionary with success status and message
        """
        try:
            form = ReservationForm(
                client_id=client_id,
                employee_id=employee_id,
                court_code=court_code,
                discipline_code=discipline_code,
                date=date,
                start_time=start_time,
                end_time=end_time,
                total_amount=total_amount,
                status=status,
            )
            result = await self.submission.submit(form)
        except Exception as e:
            return {
                "success": False,
                "message": f"Unexpected error while making reservation: {str(e)}",
            }

        response: dict[str, Any] = {"success": result.success, "message": result.message}
        if result.reservation is not None:
            response["reservation"] = result.reservation.model_dump()
        return response


# Global reservations endpoint instance
reservations_endpoint = ReservationsEndpoint()
