"""Main MCP server implementation for the sports reservations backend."""

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Any

if "--debug" in sys.argv:
    import debugpy

    debugpy.listen(("127.0.0.1", 5678))
    print(
        "⏳ Waiting for debugger to attach on port 5678...", file=sys.stderr, flush=True
    )
    debugpy.wait_for_client()
    print("✅ Debugger attached!", file=sys.stderr, flush=True)

from fastmcp import FastMCP

from .config import config
from .endpoints.clients import clients_endpoint
from .endpoints.form import form_endpoint
from .endpoints.reservations import reservations_endpoint
from .endpoints.spaces import spaces_endpoint

# Configure logging
logging.basicConfig(
    filename="deportivos_mcp.log",
    level=logging.DEBUG if config.enable_debug_mode else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Create MCP server
mcp = FastMCP("Deportivos Reservation Server")

# Tool coroutines by name, also called over HTTP by the SSE server
TOOLS: dict[str, Callable[..., Awaitable[dict[str, Any]]]] = {}


def tool(fn):
    """Register fn as an MCP tool and keep the plain coroutine in TOOLS."""
    TOOLS[fn.__name__] = fn
    mcp.tool()(fn)
    return fn


@tool
async def get_reservations() -> list[dict[str, Any]]:
    """Get all sports reservations.

    Returns:
        List of reservations
    """
    try:
        reservations = await reservations_endpoint.get_reservations()
        logger.debug(f"Retrieved {len(reservations)} reservations")
        return reservations

    except Exception as e:
        logger.error(f"Error getting reservations: {e}")
        return []


@tool
async def get_reservation_details(code: str) -> dict[str, Any]:
    """Get a reservation by its numeric code.

    Args:
        code: Reservation code (e.g. '5')

    Returns:
        Reservation details
    """
    result = await reservations_endpoint.get_reservation_details(code)
    logger.debug(f"Reservation details for {code}: {result['success']}")
    return result


@tool
async def put_reservation(
    client_id: str,
    employee_id: str,
    court_code: str,
    discipline_code: str,
    date: str,
    start_time: str = "08:00",
    end_time: str = "10:00",
    total_amount: str = "100.00",
    status: str = "CONFIRMADA",
) -> dict[str, Any]:
    """Create a sports reservation.

    Args:
        client_id: Client national identity number
        employee_id: Identity number of the employee authorizing it
        court_code: Court code
        discipline_code: Discipline code, valid for the court
        date: Date in YYYY-MM-DD format (e.g., '2025-09-24')
        start_time: Start time in HH:MM format
        end_time: End time in HH:MM format
        total_amount: Total amount
        status: Reservation status (CONFIRMADA, PENDIENTE, CANCELADA)

    Returns:
        Reservation result with success status and details
    """
    result = await reservations_endpoint.make_reservation(
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
    if result["success"]:
        logger.debug(f"Reservation made for client {client_id}, court {court_code} on {date}")
    else:
        logger.warning(f"Reservation failed: {result['message']}")
    return result


@tool
async def get_spaces() -> list[dict[str, Any]]:
    """Get list of sports facilities.

    Returns:
        List of facilities with their details
    """
    try:
        return await spaces_endpoint.get_spaces()
    except Exception as e:
        logger.error(f"Error getting facilities: {e}")
        return []


@tool
async def find_space(code: str) -> dict[str, Any]:
    """Search a sports facility by code.

    Args:
        code: Facility code

    Returns:
        Facility with number of courts, reservations and total paid
    """
    return await spaces_endpoint.find_space(code)


@tool
async def put_space(
    code: str,
    name: str,
    location: str | None = None,
    capacity: int | None = None,
    status: str | None = None,
    description: str | None = None,
) -> dict[str, Any]:
    """Create a sports facility.

    Returns:
        Creation result with success status and message
    """
    return await spaces_endpoint.create_space(
        code=code,
        name=name,
        location=location,
        capacity=capacity,
        status=status,
        description=description,
    )


@tool
async def get_courts(space_code: str) -> list[dict[str, Any]]:
    """Get courts of a sports facility.

    Args:
        space_code: Facility code

    Returns:
        List of courts
    """
    return await spaces_endpoint.get_courts(space_code)


@tool
async def get_disciplines(court_code: str) -> dict[str, Any]:
    """Get disciplines that can be played on a court.

    Args:
        court_code: Court code

    Returns:
        Disciplines valid for the court
    """
    return await spaces_endpoint.get_disciplines(court_code)


@tool
async def get_clients() -> list[dict[str, Any]]:
    """Get list of clients.

    Returns:
        List of clients
    """
    try:
        return await clients_endpoint.get_clients()
    except Exception as e:
        logger.error(f"Error getting clients: {e}")
        return []


@tool
async def put_client(
    ci: str,
    name: str,
    surname: str | None = None,
    phone: str | None = None,
    birth_date: str | None = None,
    sex: str | None = None,
    nationality: str | None = None,
    category: str | None = None,
    email: str | None = None,
) -> dict[str, Any]:
    """Create a client.

    Args:
        ci: National identity number
        name: First name
        surname: Last name
        phone: Phone number
        birth_date: Birth date in YYYY-MM-DD format
        sex: Sex
        nationality: Nationality
        category: Client category
        email: Contact email

    Returns:
        Creation result with success status and message
    """
    return await clients_endpoint.create_client(
        ci=ci,
        name=name,
        surname=surname,
        phone=phone,
        birth_date=birth_date,
        sex=sex,
        nationality=nationality,
        category=category,
        email=email,
    )


@tool
async def update_client(
    ci: str,
    name: str,
    surname: str | None = None,
    phone: str | None = None,
    birth_date: str | None = None,
    sex: str | None = None,
    nationality: str | None = None,
    category: str | None = None,
    email: str | None = None,
) -> dict[str, Any]:
    """Update a client.

    Returns:
        Update result with success status and message
    """
    return await clients_endpoint.update_client(
        ci,
        name=name,
        surname=surname,
        phone=phone,
        birth_date=birth_date,
        sex=sex,
        nationality=nationality,
        category=category,
        email=email,
    )


@tool
async def delete_client(ci: str) -> dict[str, Any]:
    """Delete a client.

    Args:
        ci: National identity number

    Returns:
        Deletion result with success status and message
    """
    return await clients_endpoint.delete_client(ci)


@tool
async def open_reservation_form() -> dict[str, Any]:
    """Open an interactive reservation form.

    Returns:
        form_id to pass to the other form tools, reference data and form state
    """
    return await form_endpoint.open_form()


@tool
async def form_set_field(form_id: str, name: str, value: str) -> dict[str, Any]:
    """Edit a field of a reservation form.

    Args:
        form_id: Form session ID (call open_reservation_form to retrieve)
        name: client_id, employee_id, space_code, court_code, discipline_code,
            date, start_time, end_time, total_amount or status
        value: New value

    Returns:
        Whether the edit was accepted, and the form state
    """
    return await form_endpoint.set_field(form_id, name, value)


@tool
async def form_type_code(form_id: str, code: str) -> dict[str, Any]:
    """Type a reservation code; the form is filled in once typing pauses.

    Args:
        form_id: Form session ID
        code: Digits of the reservation code

    Returns:
        Whether the input was accepted, and the form state
    """
    return await form_endpoint.set_search_code(form_id, code)


@tool
async def form_search_code(form_id: str) -> dict[str, Any]:
    """Look the typed reservation code up immediately.

    Args:
        form_id: Form session ID

    Returns:
        Lookup result and the form state
    """
    return await form_endpoint.search_now(form_id)


@tool
async def form_submit(form_id: str) -> dict[str, Any]:
    """Submit a reservation form.

    Args:
        form_id: Form session ID

    Returns:
        Creation result and the form state
    """
    return await form_endpoint.submit(form_id)


@tool
async def form_clear(form_id: str) -> dict[str, Any]:
    """Reset a reservation form to its defaults."""
    return await form_endpoint.clear(form_id)


@tool
async def form_state(form_id: str) -> dict[str, Any]:
    """Get the state of a reservation form."""
    return await form_endpoint.get_state(form_id)


@tool
async def close_reservation_form(form_id: str) -> dict[str, Any]:
    """Close a reservation form."""
    return await form_endpoint.close_form(form_id)


async def initialize() -> None:
    """Initialize the server components."""

    # Get configuration info
    config_info = config.to_dict()
    logger.debug(f"Configuration loaded: {config_info}")


def main() -> None:
    """Main server entry point."""
    # Initialize async components first
    asyncio.run(initialize())

    # Run the MCP server (synchronous)
    mcp.run(show_banner=False)


if __name__ == "__main__":
    main()
