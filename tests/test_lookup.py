"""Tests for the debounced reservation lookup."""

import asyncio

import pytest

from deportivos_mcp.lookup import (
    DebouncedLookupEngine,
    Idle,
    InFlight,
    Locked,
    NotFound,
    Pending,
    confirmation_message,
)

DEBOUNCE_MS = 20
QUIET = 0.1


class Recorder:
    """Collects what the engine hands to the form."""

    def __init__(self):
        self.applied = []
        self.messages = []
        self.results = []

    async def apply(self, reservation):
        self.applied.append(reservation)

    async def result(self, code, reservation):
        self.results.append((code, reservation.code if reservation else None))

    def message(self, text):
        self.messages.append(text)

    @property
    def current_message(self):
        return self.messages[-1] if self.messages else ""


def make_engine(gateway, recorder=None):
    recorder = recorder or Recorder()
    engine = DebouncedLookupEngine(
        gateway,
        apply_reservation=recorder.apply,
        set_message=recorder.message,
        debounce_ms=DEBOUNCE_MS,
        on_result=recorder.result,
    )
    return engine, recorder


class TestInput:
    """Test the code field edit boundary."""

    @pytest.mark.asyncio
    async def test_rejects_non_digits(self, gateway):
        engine, _ = make_engine(gateway)

        assert engine.set_code("12a") is False
        assert engine.set_code("-1") is False
        assert engine.set_code("1.5") is False
        assert engine.set_code("5\n") is False
        assert engine.code == ""
        assert engine.state == Idle()

    @pytest.mark.asyncio
    async def test_digit_edit_arms_timer(self, gateway):
        engine, _ = make_engine(gateway)

        assert engine.set_code("5") is True

        assert engine.state == Pending(code="5")
        await engine.close()

    @pytest.mark.asyncio
    async def test_empty_edit_returns_to_idle(self, gateway):
        engine, _ = make_engine(gateway)
        engine.set_code("5")

        engine.set_code("")
        await asyncio.sleep(QUIET)

        assert engine.state == Idle()
        assert gateway.lookup_calls == []


class TestDebounce:
    """Test coalescing of keystrokes."""

    @pytest.mark.asyncio
    async def test_one_lookup_per_quiet_period(self, gateway):
        """Test that rapid keystrokes produce a single lookup of the last value."""
        engine, _ = make_engine(gateway)

        for value in ("1", "12", "123", "1234"):
            engine.set_code(value)
            await asyncio.sleep(0.001)
        await asyncio.sleep(QUIET)

        assert gateway.lookup_calls == ["1234"]

    @pytest.mark.asyncio
    async def test_each_quiet_period_looks_up_once(self, gateway):
        engine, _ = make_engine(gateway)

        engine.set_code("99")
        await asyncio.sleep(QUIET)
        engine.set_code("998")
        engine.set_code("9981")
        await asyncio.sleep(QUIET)

        assert gateway.lookup_calls == ["99", "9981"]

    @pytest.mark.asyncio
    async def test_close_cancels_timer(self, gateway):
        engine, _ = make_engine(gateway)
        engine.set_code("5")

        await engine.close()
        await asyncio.sleep(QUIET)

        assert gateway.lookup_calls == []


class TestLookupOutcome:
    """Test transitions after the lookup answers."""

    @pytest.mark.asyncio
    async def test_match_locks_and_applies(self, gateway):
        """Test code 5 found for client Ana."""
        engine, recorder = make_engine(gateway)

        engine.set_code("5")
        await asyncio.sleep(QUIET)

        assert isinstance(engine.state, Locked)
        assert engine.locked is True
        assert recorder.applied[0].client_id == "10"
        assert "5" in recorder.current_message
        assert "Ana" in recorder.current_message
        assert recorder.results == [("5", "5")]

    @pytest.mark.asyncio
    async def test_miss_goes_to_not_found(self, gateway):
        engine, recorder = make_engine(gateway)

        engine.set_code("999")
        await asyncio.sleep(QUIET)

        assert engine.state == NotFound(code="999")
        assert recorder.applied == []
        assert recorder.current_message == ""
        assert recorder.results == [("999", None)]

    @pytest.mark.asyncio
    async def test_error_behaves_like_miss(self, gateway, transport_error):
        gateway.lookup_error = transport_error
        engine, recorder = make_engine(gateway)

        engine.set_code("5")
        await asyncio.sleep(QUIET)

        assert engine.state == NotFound(code="5")
        assert recorder.applied == []

    @pytest.mark.asyncio
    async def test_edit_while_locked_unlocks(self, gateway):
        """Test that editing a locked code clears the message and re-arms."""
        engine, recorder = make_engine(gateway)
        engine.set_code("5")
        await asyncio.sleep(QUIET)
        assert engine.locked

        engine.set_code("51")

        assert engine.locked is False
        assert recorder.current_message == ""
        assert engine.state == Pending(code="51")

        await asyncio.sleep(QUIET)
        assert gateway.lookup_calls == ["5", "51"]
        assert engine.state == NotFound(code="51")

    @pytest.mark.asyncio
    async def test_stale_answer_discarded(self, gateway):
        """Test that an answer for an edited code does not lock the form."""
        gate = asyncio.Event()
        gateway.lookup_gate = gate
        engine, recorder = make_engine(gateway)

        engine.set_code("5")
        await asyncio.sleep(QUIET)
        assert isinstance(engine.state, InFlight)

        engine.set_code("")
        gate.set()
        await asyncio.sleep(QUIET)

        assert engine.state == Idle()
        assert recorder.applied == []
        assert recorder.results == []


class TestSearchNow:
    """Test the manual search trigger."""

    @pytest.mark.asyncio
    async def test_bypasses_debounce(self, gateway):
        engine, recorder = make_engine(gateway)
        engine.set_code("5")

        assert await engine.search_now() is True

        assert gateway.lookup_calls == ["5"]
        assert engine.locked
        await asyncio.sleep(QUIET)
        assert gateway.lookup_calls == ["5"]

    @pytest.mark.asyncio
    async def test_requires_code(self, gateway):
        engine, _ = make_engine(gateway)

        assert await engine.search_now() is False
        assert gateway.lookup_calls == []

    @pytest.mark.asyncio
    async def test_not_while_in_flight(self, gateway):
        gate = asyncio.Event()
        gateway.lookup_gate = gate
        engine, _ = make_engine(gateway)
        engine.set_code("5")
        await asyncio.sleep(QUIET)

        assert await engine.search_now() is False

        gate.set()
        await asyncio.sleep(QUIET)
        assert gateway.lookup_calls == ["5"]


def test_confirmation_message_names_client_and_space():
    from conftest import make_reservation

    message = confirmation_message(make_reservation())

    assert message == "Reserva #5 encontrada: Ana Pérez - Coliseo Norte"
