"""Cascading facility -> court -> discipline selection."""

import logging
from collections.abc import Iterable

from pydantic import ValidationError

from .client import DeportivosClient
from .models import (
    ApiErrorException,
    Court,
    Discipline,
    NotFoundException,
    ValidationErrorException,
)

logger = logging.getLogger(__name__)

DISCIPLINES_ERROR = "Error al cargar las disciplinas de la cancha seleccionada"


class CascadingSelectionResolver:
    """Keeps the facility, court and discipline selections consistent.

    Changing an upstream selection clears the ones below it. Disciplines are
    fetched per court, and a response is only applied while the court it was
    requested for is still the current selection.
    """

    def __init__(self, client: DeportivosClient, courts: Iterable[Court]):
        """Initialize resolver.

        Args:
            client: Gateway used to fetch disciplines
            courts: Every court of the reference data, loaded once
        """
        self.client = client
        self._courts: tuple[Court, ...] = tuple(courts)
        self.selected_facility = ""
        self.selected_court = ""
        self.selected_discipline = ""
        self.filtered_courts: list[Court] = []
        self.disciplines: list[Discipline] = []
        self.no_courts_available = False
        self.loading_disciplines = False
        self.error = ""
        self._generation = 0

    @property
    def court_selectable(self) -> bool:
        return bool(self.selected_facility and self.filtered_courts)

    @property
    def discipline_selectable(self) -> bool:
        return bool(self.selected_court)

    def courts_for(self, facility: str) -> list[Court]:
        """Courts whose facility reference equals the given code."""
        return [court for court in self._courts if court.space_code == facility]

    def facility_of(self, court_code: str) -> str:
        """Facility code owning a court, or empty string if the court is unknown."""
        for court in self._courts:
            if court.code == court_code:
                return court.space_code
        return ""

    def select_facility(self, code: str) -> None:
        code = str(code or "")
        self.error = ""

        if not code:
            self.selected_facility = ""
            self.filtered_courts = []
            self.no_courts_available = False
            self._clear_court()
            return

        changed = code != self.selected_facility
        self.selected_facility = code
        self.filtered_courts = self.courts_for(code)
        self.no_courts_available = not self.filtered_courts
        if self.no_courts_available:
            logger.warning(f"No courts found for facility {code}")
        if changed:
            self._clear_court()

    async def select_court(self, code: str) -> None:
        """Select a court and load its disciplines.

        Raises:
            ValidationErrorException: If the court is not one of the filtered courts
        """
        code = str(code or "")
        if code:
            if not self.selected_facility:
                raise ValidationErrorException("Seleccione primero un espacio deportivo")
            if code not in {court.code for court in self.filtered_courts}:
                raise ValidationErrorException(
                    f"La cancha {code} no pertenece al espacio {self.selected_facility}"
                )

        self.error = ""
        self._clear_court()
        if not code:
            return

        self.selected_court = code
        await self._load_disciplines(code)

    def select_discipline(self, code: str) -> None:
        """Select a discipline among those valid for the selected court.

        Raises:
            ValidationErrorException: If no court is selected or the discipline is not valid for it
        """
        code = str(code or "")
        if code:
            if not self.selected_court:
                raise ValidationErrorException("Seleccione primero una cancha")
            if code not in {discipline.code for discipline in self.disciplines}:
                raise ValidationErrorException(
                    f"La disciplina {code} no es válida para la cancha {self.selected_court}"
                )
        self.selected_discipline = code

    async def bind(self, facility: str, court: str, discipline: str) -> None:
        """Adopt the selections of an existing reservation without validating them."""
        facility = str(facility or "") or self.facility_of(str(court or ""))
        self.error = ""
        self.selected_facility = facility
        self.filtered_courts = self.courts_for(facility) if facility else []
        self.no_courts_available = bool(facility) and not self.filtered_courts
        self._clear_court()
        self.selected_court = str(court or "")
        self.selected_discipline = str(discipline or "")
        if self.selected_court:
            await self._load_disciplines(self.selected_court)

    def reset(self) -> None:
        self.select_facility("")

    def _clear_court(self) -> None:
        # Invalidates any discipline request still in flight
        self._generation += 1
        self.selected_court = ""
        self.selected_discipline = ""
        self.disciplines = []
        self.loading_disciplines = False

    async def _load_disciplines(self, court_code: str) -> None:
        generation = self._generation
        self.loading_disciplines = True
        try:
            disciplines = await self.client.fetch_disciplines_for_court(court_code)
        except NotFoundException:
            disciplines = []
        except (ApiErrorException, ValidationError) as e:
            if generation != self._generation:
                return
            logger.error(f"Error loading disciplines for court {court_code}: {e}")
            self.disciplines = []
            self.error = DISCIPLINES_ERROR
            self.loading_disciplines = False
            return

        if generation != self._generation:
            logger.debug(f"Discarding stale disciplines response for court {court_code}")
            return

        self.disciplines = list(disciplines)
        self.loading_disciplines = False
        logger.debug(f"Loaded {len(self.disciplines)} disciplines for court {court_code}")
