"""Tests for the MCP-facing endpoints."""

import asyncio
import json

import httpx
import pytest
from conftest import mock_client

from deportivos_mcp.endpoints.clients import ClientsEndpoint
from deportivos_mcp.endpoints.form import FormEndpoint
from deportivos_mcp.endpoints.reservations import ReservationsEndpoint
from deportivos_mcp.endpoints.spaces import SpacesEndpoint

FORM_DATA = {
    "clientes": [{"ci": 10, "nombre": "Ana", "apellido": "Pérez"}],
    "empleados": [{"ci": 20, "nombre": "Luis"}],
    "espacios": [
        {"cod_espacio": "A", "nombre": "Coliseo Norte"},
        {"cod_espacio": "B", "nombre": "Polideportivo Sur"},
    ],
    "canchas": [
        {"cod_cancha": 1, "cod_espacio": "A"},
        {"cod_cancha": 2, "cod_espacio": "B"},
    ],
    "disciplinas": [],
}


def backend(created=None):
    """Handler answering like the reservations backend."""

    def handler(request):
        path = request.url.path
        if path == "/deportivos/datos-formulario":
            return httpx.Response(200, json=FORM_DATA)
        if path == "/deportivos/disciplinas/1":
            return httpx.Response(200, json=[{"cod_disciplina": 3, "nombre": "Fútbol"}])
        if path == "/deportivos/reservas/5":
            return httpx.Response(
                200,
                json={
                    "encontrada": True,
                    "reserva": {
                        "cod_reserva": 5,
                        "ci_cliente": 10,
                        "ci_empleado": 20,
                        "cod_cancha": 1,
                        "cod_disciplina": 3,
                        "fecha": "2025-09-24",
                        "hora_inicio": "08:00",
                        "hora_fin": "10:00",
                        "monto_total": 100,
                        "estado_reserva": "CONFIRMADA",
                        "cod_espacio": "A",
                        "cliente_nombre": "Ana",
                        "cliente_apellido": "Pérez",
                    },
                },
            )
        if path.startswith("/deportivos/reservas/"):
            return httpx.Response(404, json={"encontrada": False})
        if path == "/deportivos/reservas" and request.method == "POST":
            body = json.loads(request.content)
            if created is not None:
                created.append(body)
            return httpx.Response(201, json={"reserva": {**body, "cod_reserva": 77}})
        if path == "/deportivos/espacios/A":
            return httpx.Response(
                200,
                json={
                    "cod_espacio": "A",
                    "nombre": "Coliseo Norte",
                    "nro_canchas": 2,
                    "nro_reservas": 14,
                    "total_pago": "1400.00",
                },
            )
        return httpx.Response(404)

    return handler


class TestReservationsEndpoint:
    """Test reservation endpoint results."""

    @pytest.mark.asyncio
    async def test_details_found(self):
        endpoint = ReservationsEndpoint(mock_client(backend()))

        result = await endpoint.get_reservation_details("5")

        assert result["success"] is True
        assert result["reservation"]["client_id"] == "10"
        assert "24/09/2025" in result["message"]

    @pytest.mark.asyncio
    async def test_details_not_found(self):
        endpoint = ReservationsEndpoint(mock_client(backend()))

        result = await endpoint.get_reservation_details("999")

        assert result["success"] is False
        assert "not found" in result["message"]

    @pytest.mark.asyncio
    async def test_make_reservation_validates_first(self):
        created = []
        endpoint = ReservationsEndpoint(mock_client(backend(created)))

        result = await endpoint.make_reservation(
            client_id="10",
            employee_id="",
            court_code="1",
            discipline_code="3",
            date="2025-09-24",
            start_time="08:00",
            end_time="10:00",
            total_amount="100.00",
            status="CONFIRMADA",
        )

        assert result["success"] is False
        assert created == []

    @pytest.mark.asyncio
    async def test_make_reservation(self):
        created = []
        endpoint = ReservationsEndpoint(mock_client(backend(created)))

        result = await endpoint.make_reservation(
            client_id="10",
            employee_id="20",
            court_code="1",
            discipline_code="3",
            date="2025-09-24",
            start_time="08:00",
            end_time="10:00",
            total_amount="100.00",
            status="CONFIRMADA",
        )

        assert result["success"] is True
        assert result["reservation"]["code"] == "77"
        assert created[0]["ci_empleado"] == "20"


class TestSpacesEndpoint:
    """Test facility search."""

    @pytest.mark.asyncio
    async def test_find_space(self):
        endpoint = SpacesEndpoint(mock_client(backend()))

        result = await endpoint.find_space("A")

        assert result["success"] is True
        assert result["space"]["court_count"] == 2
        assert result["space"]["reservation_count"] == 14
        assert result["space"]["total_paid"] == "1400.00"

    @pytest.mark.asyncio
    async def test_find_space_missing(self):
        endpoint = SpacesEndpoint(mock_client(backend()))

        result = await endpoint.find_space("Z")

        assert result["success"] is False
        assert result["message"] == "No se encontró el espacio deportivo."

    @pytest.mark.asyncio
    async def test_disciplines_failure_reported(self):
        endpoint = SpacesEndpoint(mock_client(lambda request: httpx.Response(500)))

        result = await endpoint.get_disciplines("1")

        assert result["success"] is False
        assert result["data"] is None


class TestClientsEndpoint:
    """Test client endpoint results."""

    @pytest.mark.asyncio
    async def test_create_client(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"mensaje": "Cliente agregado correctamente"})

        endpoint = ClientsEndpoint(mock_client(handler))

        result = await endpoint.create_client(
            ci="10", name="Ana", surname="Pérez", birth_date="", category="A"
        )

        assert result == {"success": True, "message": "Cliente agregado correctamente"}
        assert bodies[0] == {"ci": "10", "nombre": "Ana", "apellido": "Pérez", "categoria": "A"}

    @pytest.mark.asyncio
    async def test_delete_failure(self):
        endpoint = ClientsEndpoint(
            mock_client(lambda request: httpx.Response(500, json={"error": "Error al eliminar cliente"}))
        )

        result = await endpoint.delete_client("10")

        assert result["success"] is False


class TestFormEndpoint:
    """Test form sessions driven through the endpoint."""

    @pytest.mark.asyncio
    async def test_full_form_flow(self):
        created = []
        events = []

        async def publisher(form_id, action, payload):
            events.append((form_id, action, payload.get("code", payload.get("reason"))))

        endpoint = FormEndpoint(mock_client(backend(created)), debounce_ms=20)
        endpoint.publisher = publisher

        opened = await endpoint.open_form()
        assert opened["success"] is True
        form_id = opened["form_id"]

        for name, value in [
            ("client_id", "10"),
            ("employee_id", "20"),
            ("space_code", "A"),
            ("court_code", "1"),
            ("discipline_code", "3"),
        ]:
            result = await endpoint.set_field(form_id, name, value)
            assert result["success"] is True, result["message"]

        submitted = await endpoint.submit(form_id)

        assert submitted["success"] is True
        assert "#77" in submitted["message"]
        assert submitted["state"]["form"]["client_id"] == ""
        assert created[0]["cod_disciplina"] == "3"
        assert events == [(form_id, "created", "77")]

        closed = await endpoint.close_form(form_id)
        assert closed["success"] is True
        assert form_id not in endpoint.sessions
        assert events[-1] == (form_id, "closed", "requested")

    @pytest.mark.asyncio
    async def test_debounced_code_lookup(self):
        endpoint = FormEndpoint(mock_client(backend()), debounce_ms=20)
        form_id = (await endpoint.open_form())["form_id"]

        typed = await endpoint.set_search_code(form_id, "5")
        assert typed["state"]["lookup_state"] == "pending"
        await asyncio.sleep(0.2)

        state = (await endpoint.get_state(form_id))["state"]
        assert state["locked"] is True
        assert state["form"]["client_id"] == "10"
        assert state["form"]["total_amount"] == "100"
        await endpoint.close_form(form_id)

    @pytest.mark.asyncio
    async def test_search_now_miss(self):
        endpoint = FormEndpoint(mock_client(backend()), debounce_ms=1000)
        form_id = (await endpoint.open_form())["form_id"]
        await endpoint.set_search_code(form_id, "999")

        result = await endpoint.search_now(form_id)

        assert result["success"] is False
        assert result["message"] == "Reserva no encontrada"
        assert result["state"]["lookup_state"] == "not_found"
        await endpoint.close_form(form_id)

    @pytest.mark.asyncio
    async def test_unknown_form(self):
        endpoint = FormEndpoint(mock_client(backend()))

        result = await endpoint.submit("nope")

        assert result["success"] is False


class TestFormEvents:
    """Test lookup events reaching the publisher."""

    @staticmethod
    def recording(endpoint):
        events = []

        async def publisher(form_id, action, payload):
            events.append((form_id, action, payload))

        endpoint.publisher = publisher
        return events

    @pytest.mark.asyncio
    async def test_debounced_match_is_published(self):
        endpoint = FormEndpoint(mock_client(backend()), debounce_ms=20)
        events = self.recording(endpoint)
        form_id = (await endpoint.open_form())["form_id"]

        await endpoint.set_search_code(form_id, "5")
        await asyncio.sleep(0.2)

        assert [(f, action) for f, action, _ in events] == [(form_id, "found")]
        assert events[0][2]["client_id"] == "10"
        await endpoint.close_form(form_id)

    @pytest.mark.asyncio
    async def test_immediate_miss_is_published_once(self):
        endpoint = FormEndpoint(mock_client(backend()), debounce_ms=1000)
        events = self.recording(endpoint)
        form_id = (await endpoint.open_form())["form_id"]
        await endpoint.set_search_code(form_id, "999")

        await endpoint.search_now(form_id)

        assert events == [(form_id, "not_found", {"code": "999"})]
        await endpoint.close_form(form_id)

    @pytest.mark.asyncio
    async def test_failing_publisher_does_not_break_lookup(self):
        endpoint = FormEndpoint(mock_client(backend()), debounce_ms=1000)

        async def publisher(form_id, action, payload):
            raise RuntimeError("subscriber gone")

        endpoint.publisher = publisher
        form_id = (await endpoint.open_form())["form_id"]
        await endpoint.set_search_code(form_id, "5")

        result = await endpoint.search_now(form_id)

        assert result["success"] is True
        await endpoint.close_form(form_id)


class TestFormEviction:
    """Test that abandoned form sessions do not pile up."""

    @pytest.mark.asyncio
    async def test_idle_sessions_are_closed(self):
        endpoint = FormEndpoint(mock_client(backend()), debounce_ms=1000, idle_timeout=0)
        first = (await endpoint.open_form())["form_id"]
        await endpoint.set_search_code(first, "5")
        session = endpoint.sessions[first]

        second = (await endpoint.open_form())["form_id"]

        assert list(endpoint.sessions) == [second]
        assert session.lookup.state.kind == "idle"
        assert (await endpoint.get_state(first))["success"] is False

    @pytest.mark.asyncio
    async def test_least_recently_used_closed_at_limit(self):
        endpoint = FormEndpoint(
            mock_client(backend()), max_sessions=2, idle_timeout=3600
        )
        events = []

        async def publisher(form_id, action, payload):
            events.append((form_id, action, payload))

        endpoint.publisher = publisher
        first = (await endpoint.open_form())["form_id"]
        second = (await endpoint.open_form())["form_id"]
        await endpoint.get_state(first)

        third = (await endpoint.open_form())["form_id"]

        assert set(endpoint.sessions) == {first, third}
        assert events == [(second, "closed", {"reason": "limit"})]
