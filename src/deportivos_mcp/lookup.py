"""Debounced reservation lookup by code."""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Literal

from pydantic import BaseModel, ConfigDict, ValidationError

from .client import DeportivosClient
from .config import config
from .models import ApiErrorException, Reservation
from .utils import is_code_input

logger = logging.getLogger(__name__)


class Idle(BaseModel):
    """No code, or a code waiting for the next edit."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["idle"] = "idle"


class Pending(BaseModel):
    """Debounce timer armed for a code."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["pending"] = "pending"
    code: str


class InFlight(BaseModel):
    """Lookup request issued and not answered yet."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["in_flight"] = "in_flight"
    code: str
    request_id: int


class Locked(BaseModel):
    """A reservation matched and the form is bound to it."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["locked"] = "locked"
    code: str
    reservation: Reservation


class NotFound(BaseModel):
    """The last lookup found nothing. Behaves like Idle."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["not_found"] = "not_found"
    code: str


LookupState = Idle | Pending | InFlight | Locked | NotFound


def confirmation_message(reservation: Reservation) -> str:
    message = f"Reserva #{reservation.code} encontrada: {reservation.client_full_name}"
    if reservation.space_name:
        message += f" - {reservation.space_name}"
    return message


class DebouncedLookupEngine:
    """Looks a reservation up once the code field has been quiet long enough.

    Only the most recent timer survives an edit. A match locks the engine and
    hands the reservation to ``apply_reservation``. Any further edit of the
    code unlocks it.
    """

    def __init__(
        self,
        client: DeportivosClient,
        apply_reservation: Callable[[Reservation], Awaitable[None]],
        set_message: Callable[[str], None],
        debounce_ms: int | None = None,
        on_result: Callable[[str, Reservation | None], Awaitable[None]] | None = None,
    ):
        """Initialize lookup engine.

        Args:
            client: Gateway used for the lookup
            apply_reservation: Populates the form from a matched reservation
            set_message: Shows (or clears, with "") the confirmation message
            debounce_ms: Quiet period in milliseconds, defaults to the configured one
            on_result: Told about every settled lookup, debounced or immediate,
                with the code and the match (None on a miss)
        """
        self.client = client
        self._apply_reservation = apply_reservation
        self._set_message = set_message
        self._on_result = on_result
        ms = debounce_ms if debounce_ms is not None else config.lookup_debounce_ms
        self.debounce = ms / 1000
        self.code = ""
        self.state: LookupState = Idle()
        self._timer: asyncio.Task | None = None
        self._lookups: set[asyncio.Task] = set()
        self._request_seq = 0

    @property
    def locked(self) -> bool:
        return isinstance(self.state, Locked)

    @property
    def in_flight(self) -> bool:
        return isinstance(self.state, InFlight)

    def set_code(self, value: str) -> bool:
        """Handle an edit of the code field. Must run inside the event loop.

        Args:
            value: New content of the field

        Returns:
            False if the value was rejected (not digits only), True otherwise
        """
        value = "" if value is None else str(value)
        if not is_code_input(value):
            logger.debug(f"Rejected reservation code input {value!r}")
            return False

        self.code = value
        if isinstance(self.state, Locked):
            logger.debug(f"Unlocking reservation {self.state.code}")
            self._set_message("")

        self._cancel_timer()
        if value:
            self.state = Pending(code=value)
            self._timer = asyncio.create_task(self._debounced(value))
        else:
            self.state = Idle()
        return True

    async def search_now(self) -> bool:
        """Look the current code up immediately, skipping the debounce.

        Returns:
            True if a lookup was issued
        """
        if not self.code or self.in_flight:
            return False
        self._cancel_timer()
        await self._lookup(self.code)
        return True

    def reset(self) -> None:
        """Forget the code and return to Idle. Answers still in flight are ignored."""
        self._cancel_timer()
        self.code = ""
        self.state = Idle()

    async def close(self) -> None:
        """Cancel the timer and any lookup still running."""
        self._cancel_timer()
        tasks = list(self._lookups)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self.state = Idle()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def _debounced(self, code: str) -> None:
        await asyncio.sleep(self.debounce)
        # From here on the request is in flight and no longer cancelled by edits
        task = asyncio.current_task()
        if self._timer is task:
            self._timer = None
        if task is not None:
            self._lookups.add(task)
            task.add_done_callback(self._lookups.discard)
        await self._lookup(code)

    async def _lookup(self, code: str) -> Reservation | None:
        self._request_seq += 1
        request_id = self._request_seq
        self.state = InFlight(code=code, request_id=request_id)
        logger.debug(f"Looking up reservation {code} (request {request_id})")

        try:
            reservation = await self.client.fetch_reservation_by_code(code)
        except (ApiErrorException, ValidationError) as e:
            logger.error(f"Error looking up reservation {code}: {e}")
            reservation = None

        if self.state != InFlight(code=code, request_id=request_id):
            logger.debug(f"Discarding stale lookup response for {code}")
            return None

        if reservation is None:
            self.state = NotFound(code=code)
            self._set_message("")
            await self._notify(code, None)
            return None

        locked = Locked(code=code, reservation=reservation)
        self.state = locked
        await self._apply_reservation(reservation)
        if self.state != locked:
            return None
        self._set_message(confirmation_message(reservation))
        await self._notify(code, reservation)
        return reservation

    async def _notify(self, code: str, reservation: Reservation | None) -> None:
        if self._on_result is not None:
            await self._on_result(code, reservation)
