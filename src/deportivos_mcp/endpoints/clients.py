"""Client management endpoints."""

import logging
from typing import Any

from ..client import DeportivosClient
from ..models import ApiErrorException, Client

logger = logging.getLogger(__name__)


class ClientsEndpoint:
    """Endpoint for client CRUD operations."""

    def __init__(self, client: DeportivosClient | None = None):
        """Initialize clients endpoint."""
        self.client = client or DeportivosClient()

    async def get_clients(self) -> list[dict[str, Any]]:
        """Get all clients ordered by identity number."""
        clients = await self.client.list_clients()
        return [c.model_dump() for c in clients]

    async def create_client(self, **fields: Any) -> dict[str, Any]:
        """Create a client.

        Args:
            **fields: Client fields (ci, name, surname, phone, birth_date, sex,
                nationality, category, email)

        Returns:
            Result dictionary with success status and message
        """
        try:
            client = Client(**fields)
            message = await self.client.create_client(client)
            return {"success": True, "message": message}
        except ApiErrorException as e:
            logger.error(f"API error creating client: {e.message}")
            return {"success": False, "message": f"Error al crear cliente: {e.message}"}
        except Exception as e:
            logger.error(f"Unexpected error creating client: {e}")
            return {"success": False, "message": f"Unexpected error: {str(e)}"}

    async def update_client(self, ci: str, **fields: Any) -> dict[str, Any]:
        """Update a client.

        Args:
            ci: Identity number of the client to update
            **fields: New values of the client fields

        Returns:
            Result dictionary with success status and message
        """
        try:
            client = Client(ci=ci, **fields)
            message = await self.client.update_client(ci, client)
            return {"success": True, "message": message}
        except ApiErrorException as e:
            logger.error(f"API error updating client {ci}: {e.message}")
            return {"success": False, "message": f"Error al actualizar cliente: {e.message}"}
        except Exception as e:
            logger.error(f"Unexpected error updating client {ci}: {e}")
            return {"success": False, "message": f"Unexpected error: {str(e)}"}

    async def delete_client(self, ci: str) -> dict[str, Any]:
        """Delete a client.

        Args:
            ci: Identity number of the client

        Returns:
            Result dictionary with success status and message
        """
        try:
            message = await self.client.delete_client(ci)
            return {"success": True, "message": message}
        except ApiErrorException as e:
            logger.error(f"API error deleting client {ci}: {e.message}")
            return {"success": False, "message": f"Error al eliminar cliente: {e.message}"}


# Global clients endpoint instance
clients_endpoint = ClientsEndpoint()
