from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Callable, Optional, Tuple

from ..common.datetime_utils import add_months, today_local
from ..common.scope import ScopeFilters
from ..core.enums import CalendarView
from .model import CalendarPage
from .projector import parse_view, visible_range

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalendarViewState:
    anchor: date
    view: CalendarView = CalendarView.MONTH
    filters: ScopeFilters = ScopeFilters()
    show_filters: bool = False

    @property
    def range(self) -> Tuple[date, date]:
        return visible_range(self.view, self.anchor)


@dataclass(frozen=True)
class RefreshTicket:
    """Identifies one in-flight refresh; responses are matched against it on arrival."""

    token: int
    view: CalendarView
    anchor: date
    range: Tuple[date, date]
    filters: ScopeFilters


def step(view: CalendarView, anchor: date, direction: int) -> date:
    """Move ``anchor`` one view unit backwards (-1) or forwards (+1)."""
    if view == CalendarView.DAY:
        return anchor + timedelta(days=direction)
    if view == CalendarView.WEEK:
        return anchor + timedelta(weeks=direction)
    if view == CalendarView.MONTH:
        return add_months(anchor, direction)
    return add_months(anchor, 12 * direction)


class CalendarViewController:
    """Single writer for one session's calendar navigation state.

    Every transition replaces the immutable state. Each refresh gets a fresh,
    increasing token; a response is applied only when its token is the latest
    and its range and filters still match the current state.
    """

    def __init__(
        self,
        state: CalendarViewState | None = None,
        *,
        today: Callable[[], date] = today_local,
    ):
        self._today = today
        self._lock = threading.Lock()
        self._state = state or CalendarViewState(anchor=today())
        self._token = 0
        self._page: Optional[CalendarPage] = None

    @property
    def state(self) -> CalendarViewState:
        return self._state

    @property
    def page(self) -> Optional[CalendarPage]:
        return self._page

    def _set(self, state: CalendarViewState) -> CalendarViewState:
        with self._lock:
            self._state = state
            return state

    def navigate(self, direction: int) -> CalendarViewState:
        if direction not in (-1, 1):
            raise ValueError("direction must be -1 or 1")
        current = self._state
        return self._set(replace(current, anchor=step(current.view, current.anchor, direction)))

    def previous(self) -> CalendarViewState:
        return self.navigate(-1)

    def next(self) -> CalendarViewState:
        return self.navigate(1)

    def today(self) -> CalendarViewState:
        return self._set(replace(self._state, anchor=self._today()))

    def with_view(self, view: CalendarView | str) -> CalendarViewState:
        return self._set(replace(self._state, view=parse_view(view)))

    def with_filters(self, filters: ScopeFilters) -> CalendarViewState:
        return self._set(replace(self._state, filters=filters))

    def toggle_filters(self) -> CalendarViewState:
        return self._set(replace(self._state, show_filters=not self._state.show_filters))

    def begin_refresh(self) -> RefreshTicket:
        with self._lock:
            self._token += 1
            state = self._state
            return RefreshTicket(
                token=self._token,
                view=state.view,
                anchor=state.anchor,
                range=state.range,
                filters=state.filters,
            )

    def is_current(self, ticket: RefreshTicket) -> bool:
        state = self._state
        return (
            ticket.token == self._token
            and ticket.view == state.view
            and ticket.range == state.range
            and ticket.filters == state.filters
        )

    def apply(self, ticket: RefreshTicket, page: CalendarPage) -> bool:
        """Store ``page`` if ``ticket`` is still current; otherwise discard it."""
        with self._lock:
            if not self.is_current(ticket):
                logger.debug("Discarding stale calendar response (token %s, latest %s)", ticket.token, self._token)
                return False
            self._page = page
            return True
