"""Sports facility, court and discipline endpoints."""

import logging
from typing import Any

from ..client import DeportivosClient
from ..models import ApiErrorException, SportSpace

logger = logging.getLogger(__name__)


class SpacesEndpoint:
    """Endpoint for facility related operations."""

    def __init__(self, client: DeportivosClient | None = None):
        """Initialize spaces endpoint."""
        self.client = client or DeportivosClient()

    async def get_spaces(self) -> list[dict[str, Any]]:
        """Get all sports facilities."""
        spaces = await self.client.list_facilities()
        logger.info(f"Retrieved {len(spaces)} facilities")
        return [space.model_dump() for space in spaces]

    async def find_space(self, code: str) -> dict[str, Any]:
        """Search a facility by code, with its court and reservation totals.

        Args:
            code: Facility code

        Returns:
            Result dictionary with the facility under "space"
        """
        try:
            space = await self.client.fetch_facility(code)
        except ApiErrorException as e:
            logger.error(f"API error searching facility {code}: {e.message}")
            return {"success": False, "message": f"Failed to search facility: {e.message}"}

        if space is None:
            return {"success": False, "message": "No se encontró el espacio deportivo."}
        return {
            "success": True,
            "message": f"Espacio deportivo {space.code} encontrado",
            "space": space.model_dump(),
        }

    async def create_space(
        self,
        code: str,
        name: str,
        location: str | None = None,
        capacity: int | None = None,
        status: str | None = None,
        description: str | None = None,
    ) -> dict[str, Any]:
        """Create a sports facility.

        Returns:
            Result dictionary with success status and message
        """
        try:
            space = SportSpace(
                code=code,
                name=name,
                location=location,
                capacity=capacity,
                status=status,
                description=description,
            )
            created = await self.client.create_facility(space)
            return {
                "success": True,
                "message": f"Espacio deportivo {created.code} creado",
                "space": created.model_dump(),
            }
        except ApiErrorException as e:
            logger.error(f"API error creating facility {code}: {e.message}")
            return {"success": False, "message": f"Failed to create facility: {e.message}"}
        except Exception as e:
            logger.error(f"Unexpected error creating facility {code}: {e}")
            return {"success": False, "message": f"Unexpected error: {str(e)}"}

    async def get_courts(self, space_code: str) -> list[dict[str, Any]]:
        """Get courts of a facility."""
        courts = await self.client.fetch_courts_for_facility(space_code)
        return [court.model_dump() for court in courts]

    async def get_disciplines(self, court_code: str) -> dict[str, Any]:
        """Get disciplines valid for a court.

        Returns:
            Result dictionary with the disciplines under "data"
        """
        try:
            disciplines = await self.client.fetch_disciplines_for_court(court_code)
        except ApiErrorException as e:
            logger.error(f"API error getting disciplines for court {court_code}: {e.message}")
            return {
                "success": False,
                "message": f"Failed to get disciplines: {e.message}",
                "data": None,
            }
        return {
            "success": True,
            "message": f"{len(disciplines)} disciplines for court {court_code}",
            "data": [discipline.model_dump() for discipline in disciplines],
        }


# Global spaces endpoint instance
spaces_endpoint = SpacesEndpoint()
