"""HTTP bridge: tool calls over POST and form events over Server-Sent Events."""

import asyncio
import inspect
import json
import logging
from datetime import datetime, timezone
from typing import Any

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from sse_starlette.sse import EventSourceResponse

from .endpoints.form import FormEndpoint, form_endpoint
from .server import TOOLS

logger = logging.getLogger(__name__)

KEEPALIVE_SECONDS = 15


def describe_tool(name: str, fn) -> dict[str, Any]:
    """Name, summary line and parameters of a tool coroutine."""
    doc = inspect.getdoc(fn) or ""
    parameters = {}
    for param in inspect.signature(fn).parameters.values():
        annotation = param.annotation
        parameters[param.name] = {
            "type": getattr(annotation, "__name__", str(annotation)),
            "required": param.default is inspect.Parameter.empty,
        }
    return {"name": name, "description": doc.split("\n\n")[0], "parameters": parameters}


class FormEventBridge:
    """Serves the tools over HTTP and streams form events to SSE subscribers.

    A subscriber either watches one form_id or every event. Events carry the
    form they belong to, the action ("found", "not_found", "created",
    "closed", "tool_result") and its payload.
    """

    def __init__(self, forms: FormEndpoint):
        self.forms = forms
        self.subscribers: dict[asyncio.Queue, str | None] = {}
        self.app = FastAPI(title="Deportivos MCP SSE Server")
        self._setup_routes()

    def subscribe(self, form_id: str | None = None) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self.subscribers[queue] = form_id
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self.subscribers.pop(queue, None)

    async def publish(
        self, form_id: str | None, action: str, payload: dict[str, Any]
    ) -> int:
        """Queue an event for every subscriber watching its form or everything.

        Returns:
            Number of subscribers the event was queued for
        """
        event = {
            "form_id": form_id,
            "action": action,
            "payload": payload,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        delivered = 0
        for queue, watched in list(self.subscribers.items()):
            if watched is None or watched == form_id:
                queue.put_nowait(event)
                delivered += 1
        logger.debug(f"Event {action} for form {form_id} queued for {delivered} subscribers")
        return delivered

    def _setup_routes(self):
        app = self.app

        @app.get("/")
        async def root():
            return {
                "message": "Deportivos MCP SSE Server",
                "version": "0.1.0",
                "endpoints": {
                    "sse": "/events?form_id=<optional>",
                    "health": "/health",
                    "forms": "/forms",
                    "tools": "/tools",
                },
            }

        @app.get("/health")
        async def health():
            return {
                "status": "healthy",
                "subscribers": len(self.subscribers),
                "open_forms": len(self.forms.sessions),
            }

        @app.get("/forms")
        async def list_forms():
            """Open form sessions with their lookup state."""
            return {
                "forms": [
                    {
                        "form_id": form_id,
                        "search_code": session.lookup.code,
                        "lookup_state": session.lookup.state.kind,
                        "locked": session.lookup.locked,
                    }
                    for form_id, session in self.forms.sessions.items()
                ]
            }

        @app.get("/forms/{form_id}")
        async def form_state(form_id: str):
            result = await self.forms.get_state(form_id)
            if not result["success"]:
                raise HTTPException(status_code=404, detail=result["message"])
            return result["state"]

        @app.get("/events")
        async def events(form_id: str | None = None):
            """Stream events, of one form when form_id is given."""
            if form_id is not None and form_id not in self.forms.sessions:
                raise HTTPException(status_code=404, detail=f"Unknown form session {form_id}")

            async def stream():
                queue = self.subscribe(form_id)
                try:
                    yield {"event": "connected", "data": json.dumps({"form_id": form_id})}
                    session = self.forms.sessions.get(form_id) if form_id else None
                    if session is not None:
                        yield {
                            "event": "state",
                            "data": json.dumps(session.snapshot(), default=str),
                        }
                    while True:
                        event = await queue.get()
                        yield {
                            "event": event["action"],
                            "data": json.dumps(event, default=str),
                        }
                finally:
                    self.unsubscribe(queue)

            return EventSourceResponse(stream(), ping=KEEPALIVE_SECONDS)

        @app.get("/tools")
        async def list_tools():
            return {"tools": [describe_tool(name, fn) for name, fn in TOOLS.items()]}

        @app.post("/tools/{tool_name}")
        async def execute_tool(tool_name: str, request: Request):
            """Run a tool with {"params": {...}} and publish its result."""
            fn = TOOLS.get(tool_name)
            if fn is None:
                raise HTTPException(status_code=404, detail=f"Tool '{tool_name}' not found")

            try:
                body = await request.json() if await request.body() else {}
            except ValueError as e:
                raise HTTPException(status_code=422, detail=f"Invalid JSON body: {e}") from e
            params = body.get("params", {}) if isinstance(body, dict) else None
            if not isinstance(params, dict):
                raise HTTPException(status_code=422, detail="params must be an object")
            try:
                inspect.signature(fn).bind(**params)
            except TypeError as e:
                raise HTTPException(
                    status_code=422, detail=f"Invalid parameters for {tool_name}: {e}"
                ) from e

            result = await fn(**params)
            form_id = params.get("form_id") or result.get("form_id")
            await self.publish(
                form_id,
                "tool_result",
                {"tool": tool_name, "params": params, "result": result},
            )
            return {"success": True, "result": result}


# Global bridge, receiving the events of the shared form endpoint
bridge = FormEventBridge(form_endpoint)
form_endpoint.publisher = bridge.publish


async def run_sse_server_async(host: str = "0.0.0.0", port: int = 8000) -> asyncio.Task:
    """Start the bridge on the running event loop.

    Returns:
        Task serving HTTP until cancelled
    """
    server = uvicorn.Server(
        uvicorn.Config(bridge.app, host=host, port=port, log_level="info")
    )
    logger.info(f"Starting SSE server on {host}:{port}")
    return asyncio.create_task(server.serve())
