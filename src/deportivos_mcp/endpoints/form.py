"""Interactive reservation form endpoints."""

import functools
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

from ..client import DeportivosClient
from ..config import config
from ..form import ReservationFormSession

logger = logging.getLogger(__name__)

# Receives (form_id, action, payload)
Publisher = Callable[[str, str, dict[str, Any]], Awaitable[None]]


class FormEndpoint:
    """Endpoint driving reservation form sessions, one per form_id.

    Sessions untouched for ``idle_timeout`` seconds are closed the next time
    a form is opened, and the least recently used one is closed when
    ``max_sessions`` are already open.
    """

    def __init__(
        self,
        client: DeportivosClient | None = None,
        debounce_ms: int | None = None,
        max_sessions: int | None = None,
        idle_timeout: float | None = None,
    ):
        """Initialize form endpoint.

        Args:
            client: Gateway shared by every form session
            debounce_ms: Quiet period before a code lookup, in milliseconds
            max_sessions: Forms kept open at once
            idle_timeout: Seconds without a call before a form is closed
        """
        self.client = client or DeportivosClient()
        self.debounce_ms = debounce_ms
        self.max_sessions = max(
            1, max_sessions if max_sessions is not None else config.max_form_sessions
        )
        self.idle_timeout = (
            idle_timeout if idle_timeout is not None else config.form_idle_timeout
        )
        self.sessions: dict[str, ReservationFormSession] = {}
        self.last_used: dict[str, float] = {}
        # Set by the SSE server to stream form events
        self.publisher: Publisher | None = None

    def _unknown(self, form_id: str) -> dict[str, Any]:
        return {"success": False, "message": f"Unknown form session {form_id}"}

    def _session(self, form_id: str) -> ReservationFormSession | None:
        session = self.sessions.get(form_id)
        if session is not None:
            self.last_used[form_id] = time.monotonic()
        return session

    async def _publish(self, form_id: str, action: str, payload: dict[str, Any]) -> None:
        if self.publisher is None:
            return
        try:
            await self.publisher(form_id, action, payload)
        except Exception as e:
            logger.warning(f"Failed to publish form event {action} for {form_id}: {e}")

    async def _discard(self, form_id: str, reason: str) -> ReservationFormSession | None:
        session = self.sessions.pop(form_id, None)
        self.last_used.pop(form_id, None)
        if session is None:
            return None
        await session.close()
        logger.info(f"Closed form session {form_id} ({reason})")
        await self._publish(form_id, "closed", {"reason": reason})
        return session

    async def evict(self) -> list[str]:
        """Close idle sessions, then the least recently used ones above the cap.

        Returns:
            IDs of the closed sessions
        """
        now = time.monotonic()
        evicted = [
            form_id
            for form_id, used in self.last_used.items()
            if now - used >= self.idle_timeout
        ]
        for form_id in evicted:
            await self._discard(form_id, "idle")

        by_age = sorted(self.last_used, key=self.last_used.__getitem__)
        while len(by_age) >= self.max_sessions:
            form_id = by_age.pop(0)
            await self._discard(form_id, "limit")
            evicted.append(form_id)
        return evicted

    async def open_form(self) -> dict[str, Any]:
        """Open a form session and load its reference data.

        Returns:
            Result dictionary with the new form_id and the reference data
        """
        await self.evict()

        form_id = uuid.uuid4().hex
        session = ReservationFormSession(
            self.client,
            debounce_ms=self.debounce_ms,
            listener=functools.partial(self._publish, form_id),
        )
        loaded = await session.open()
        self.sessions[form_id] = session
        self.last_used[form_id] = time.monotonic()
        logger.info(f"Opened form session {form_id}")
        return {
            "success": loaded,
            "message": "Formulario listo" if loaded else session.error,
            "form_id": form_id,
            "reference": session.reference.model_dump(),
            "state": session.snapshot(),
        }

    async def set_field(self, form_id: str, name: str, value: str) -> dict[str, Any]:
        """Edit one field of a form session."""
        session = self._session(form_id)
        if session is None:
            return self._unknown(form_id)
        accepted = await session.set_field(name, value)
        return {
            "success": accepted,
            "message": "OK" if accepted else session.error,
            "state": session.snapshot(),
        }

    async def set_search_code(self, form_id: str, code: str) -> dict[str, Any]:
        """Type into the reservation code field of a form session."""
        session = self._session(form_id)
        if session is None:
            return self._unknown(form_id)
        accepted = session.set_search_code(code)
        return {
            "success": accepted,
            "message": "OK" if accepted else "El código solo admite dígitos",
            "state": session.snapshot(),
        }

    async def search_now(self, form_id: str) -> dict[str, Any]:
        """Look the typed reservation code up without waiting for the debounce."""
        session = self._session(form_id)
        if session is None:
            return self._unknown(form_id)
        issued = await session.search_now()
        return {
            "success": issued and session.lookup.locked,
            "message": session.success
            if session.lookup.locked
            else ("Reserva no encontrada" if issued else "No hay código para buscar"),
            "state": session.snapshot(),
        }

    async def submit(self, form_id: str) -> dict[str, Any]:
        """Submit a form session."""
        session = self._session(form_id)
        if session is None:
            return self._unknown(form_id)
        result = await session.submit()
        return {
            "success": result.success,
            "message": result.message,
            "state": session.snapshot(),
        }

    async def clear(self, form_id: str) -> dict[str, Any]:
        session = self._session(form_id)
        if session is None:
            return self._unknown(form_id)
        session.clear()
        return {"success": True, "message": "Formulario limpio", "state": session.snapshot()}

    async def get_state(self, form_id: str) -> dict[str, Any]:
        session = self._session(form_id)
        if session is None:
            return self._unknown(form_id)
        return {"success": True, "message": "OK", "state": session.snapshot()}

    async def close_form(self, form_id: str) -> dict[str, Any]:
        """Close a form session and cancel its pending lookup."""
        if await self._discard(form_id, "requested") is None:
            return self._unknown(form_id)
        return {"success": True, "message": f"Form session {form_id} closed"}


# Global form endpoint instance
form_endpoint = FormEndpoint()
