from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Union

from ..core.enums import CalendarAction, Role
from ..core.exceptions import AuthorizationError

logger = logging.getLogger(__name__)

A = CalendarAction

_ALL_ACTIONS: FrozenSet[CalendarAction] = frozenset(CalendarAction)

_COORDINATOR_ACTIONS: FrozenSet[CalendarAction] = frozenset(
    {
        A.VIEW_HOLIDAYS,
        A.CREATE_HOLIDAY,
        A.UPDATE_HOLIDAY,
        A.VIEW_ACADEMIC_EVENTS,
        A.CREATE_ACADEMIC_EVENT,
        A.UPDATE_ACADEMIC_EVENT,
        A.DELETE_ACADEMIC_EVENT,
        A.VIEW_CALENDAR,
        A.EXPORT_CALENDAR,
    }
)

_TEACHER_ACTIONS: FrozenSet[CalendarAction] = frozenset(
    {A.VIEW_HOLIDAYS, A.VIEW_ACADEMIC_EVENTS, A.VIEW_CALENDAR, A.EXPORT_CALENDAR}
)

_VIEWER_ACTIONS: FrozenSet[CalendarAction] = frozenset(
    {A.VIEW_HOLIDAYS, A.VIEW_ACADEMIC_EVENTS, A.VIEW_CALENDAR}
)

DEFAULT_CAPABILITIES: Mapping[Role, FrozenSet[CalendarAction]] = MappingProxyType(
    {
        Role.SYSTEM_ADMIN: _ALL_ACTIONS,
        Role.SYSTEM_MANAGER: _ALL_ACTIONS,
        Role.ADMINISTRATOR: _ALL_ACTIONS,
        Role.CAMPUS_ADMIN: _ALL_ACTIONS,
        Role.CAMPUS_COORDINATOR: _COORDINATOR_ACTIONS,
        Role.COORDINATOR: _COORDINATOR_ACTIONS,
        Role.CAMPUS_TEACHER: _TEACHER_ACTIONS,
        Role.TEACHER: _TEACHER_ACTIONS,
        Role.CAMPUS_STUDENT: _VIEWER_ACTIONS,
        Role.STUDENT: _VIEWER_ACTIONS,
        Role.CAMPUS_PARENT: _VIEWER_ACTIONS,
    }
)

# UI control name -> action that must be allowed for the control to show.
CONTROL_ACTIONS: Mapping[str, CalendarAction] = MappingProxyType(
    {
        "add_event": A.CREATE_ACADEMIC_EVENT,
        "add_holiday": A.CREATE_HOLIDAY,
        "add_schedule_pattern": A.CREATE_SCHEDULE_PATTERN,
        "edit_schedule_pattern": A.UPDATE_SCHEDULE_PATTERN,
        "add_schedule_exception": A.CREATE_SCHEDULE_EXCEPTION,
        "export": A.EXPORT_CALENDAR,
    }
)

RoleLike = Union[Role, str, None]
ActionLike = Union[CalendarAction, str, None]


def _as_role(value: RoleLike) -> Optional[Role]:
    if isinstance(value, Role):
        return value
    if not value:
        return None
    try:
        return Role(str(value).upper())
    except ValueError:
        return None


def _as_action(value: ActionLike) -> Optional[CalendarAction]:
    if isinstance(value, CalendarAction):
        return value
    if not value:
        return None
    try:
        return CalendarAction(str(value).upper())
    except ValueError:
        return None


class PermissionGate:
    """Static role -> allowed-action lookup. Default deny.

    Built once at process start and read-only afterwards. The UI asks it which
    controls to show; every mutation path asks it again before writing.
    """

    def __init__(self, capabilities: Mapping[Role, Iterable[CalendarAction]] | None = None):
        table = DEFAULT_CAPABILITIES if capabilities is None else capabilities
        self._table: Mapping[Role, FrozenSet[CalendarAction]] = MappingProxyType(
            {role: frozenset(actions) for role, actions in table.items()}
        )

    @classmethod
    def from_config(cls, overrides: Mapping[str, Iterable[str]] | None = None) -> "PermissionGate":
        """Default table with per-role replacements, e.g. ``{"TEACHER": ["VIEW_CALENDAR"]}``.

        Unknown role or action names are rejected so a typo cannot widen access silently.
        """
        table: Dict[Role, FrozenSet[CalendarAction]] = dict(DEFAULT_CAPABILITIES)
        for role_name, action_names in (overrides or {}).items():
            role = _as_role(role_name)
            if role is None:
                raise ValueError(f"Unknown role in capability overrides: {role_name!r}")
            actions = set()
            for action_name in action_names:
                action = _as_action(action_name)
                if action is None:
                    raise ValueError(f"Unknown action in capability overrides: {action_name!r}")
                actions.add(action)
            table[role] = frozenset(actions)
            logger.info("Capability override for %s: %d actions", role.value, len(actions))
        return cls(table)

    def can_perform(self, role: RoleLike, action: ActionLike) -> bool:
        resolved_role = _as_role(role)
        resolved_action = _as_action(action)
        if resolved_role is None or resolved_action is None:
            return False
        return resolved_action in self._table.get(resolved_role, frozenset())

    def require(self, role: RoleLike, action: CalendarAction) -> None:
        if not self.can_perform(role, action):
            logger.info("Denied %s for role %s", action.value, role)
            raise AuthorizationError("You do not have permission to perform this action")

    def allowed_actions(self, role: RoleLike) -> FrozenSet[CalendarAction]:
        resolved = _as_role(role)
        if resolved is None:
            return frozenset()
        return self._table.get(resolved, frozenset())

    def has_any(self, role: RoleLike, actions: Iterable[CalendarAction]) -> bool:
        return any(self.can_perform(role, action) for action in actions)

    def has_all(self, role: RoleLike, actions: Iterable[CalendarAction]) -> bool:
        return all(self.can_perform(role, action) for action in actions)

    def visible_controls(self, role: RoleLike) -> Dict[str, bool]:
        return {name: self.can_perform(role, action) for name, action in CONTROL_ACTIONS.items()}
