"""Audit records of flow executions: flows, steps and the actions they produced."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_TIME_PATTERN = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})"
)


def _format_time(value: datetime) -> str:
    """RFC 3339 text with trailing zeros of the fraction removed; naive values count as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset() or timedelta(0)
    if not offset:
        return text + "Z"
    sign = "+" if offset > timedelta(0) else "-"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _parse_time(value: Any) -> datetime:
    if value is None or value == "":
        return ZERO_TIME
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str):
        raise ValueError(f"cannot read a time from {value!r}")
    match = _TIME_PATTERN.fullmatch(value)
    if not match:
        raise ValueError(f"invalid time {value!r}")
    year, month, day, hour, minute, second = (int(part) for part in match.groups()[:6])
    fraction, zone = match.group(7), match.group(8)
    microsecond = int((fraction or "")[:6].ljust(6, "0"))
    if zone == "Z":
        tz = timezone.utc
    else:
        sign = 1 if zone[0] == "+" else -1
        tz = timezone(sign * timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6])))
    return datetime(year, month, day, hour, minute, second, microsecond, tzinfo=tz)


def _first_key(data: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if data.get(name) is not None:
            return data[name]
    return ""


def _string_map(value: Any) -> dict[str, str]:
    return dict(value or {})


def _sorted_map(value: Mapping[str, Any]) -> dict[str, Any]:
    return dict(sorted(value.items()))


@dataclass
class Pack:
    """The pack an event came from."""

    id: str = ""
    name: str = ""
    labels: dict[str, str] = field(default_factory=dict)


@dataclass
class State:
    """A state an action was in, and when it entered it."""

    value: str = ""
    time: datetime = ZERO_TIME


@dataclass
class Event:
    """An event raised by a pack."""

    name: str = ""
    pack: Pack = field(default_factory=Pack)
    payload: Any = None
    created_at: datetime = ZERO_TIME
    received_at: datetime = ZERO_TIME


@dataclass
class EventDef:
    """The event a step waits for."""

    name: str = ""
    pack_name: str = ""
    pack_labels: dict[str, str] = field(default_factory=dict)


@dataclass
class Command:
    """The command a step asks a pack to run."""

    name: str = ""
    pack_name: str = ""
    pack_labels: dict[str, str] = field(default_factory=dict)
    input: Any = None


@dataclass
class Step:
    """One step of a flow definition."""

    id: str = ""
    depends_on: list[str] = field(default_factory=list)
    event: EventDef = field(default_factory=EventDef)
    context: dict[str, str] = field(default_factory=dict)
    criteria: str = ""
    command: Command = field(default_factory=Command)


def _pack_to_dict(pack: Pack) -> dict[str, Any]:
    data: dict[str, Any] = {"id": pack.id, "name": pack.name}
    if pack.labels:
        data["labels"] = _sorted_map(pack.labels)
    return data


def _pack_from_dict(data: Optional[Mapping[str, Any]]) -> Pack:
    data = data or {}
    return Pack(
        id=_first_key(data, "id", "_id"),
        name=data.get("name") or "",
        labels=_string_map(data.get("labels")),
    )


def _state_to_dict(state: State) -> dict[str, Any]:
    return {"value": state.value, "time": _format_time(state.time)}


def _state_from_dict(data: Optional[Mapping[str, Any]]) -> State:
    data = data or {}
    return State(value=data.get("value") or "", time=_parse_time(data.get("time")))


def _event_to_dict(event: Event) -> dict[str, Any]:
    data: dict[str, Any] = {"event": event.name, "pack": _pack_to_dict(event.pack)}
    if event.payload is not None:
        data["payload"] = event.payload
    data["createdAt"] = _format_time(event.created_at)
    data["receivedAt"] = _format_time(event.received_at)
    return data


def _event_from_dict(data: Optional[Mapping[str, Any]]) -> Event:
    data = data or {}
    return Event(
        name=_first_key(data, "event", "name"),
        pack=_pack_from_dict(data.get("pack")),
        payload=data.get("payload"),
        created_at=_parse_time(data.get("createdAt")),
        received_at=_parse_time(data.get("receivedAt")),
    )


def _event_def_to_dict(event: EventDef) -> dict[str, Any]:
    data: dict[str, Any] = {"name": event.name, "packName": event.pack_name}
    if event.pack_labels:
        data["packLabels"] = _sorted_map(event.pack_labels)
    return data


def _event_def_from_dict(data: Optional[Mapping[str, Any]]) -> EventDef:
    data = data or {}
    return EventDef(
        name=data.get("name") or "",
        pack_name=data.get("packName") or "",
        pack_labels=_string_map(data.get("packLabels")),
    )


def _command_to_dict(command: Command) -> dict[str, Any]:
    data: dict[str, Any] = {"name": command.name, "packName": command.pack_name}
    if command.pack_labels:
        data["packLabels"] = _sorted_map(command.pack_labels)
    data["input"] = command.input
    return data


def _command_from_dict(data: Optional[Mapping[str, Any]]) -> Command:
    data = data or {}
    return Command(
        name=data.get("name") or "",
        pack_name=data.get("packName") or "",
        pack_labels=_string_map(data.get("packLabels")),
        input=data.get("input"),
    )


def _step_to_dict(step: Step) -> dict[str, Any]:
    data: dict[str, Any] = {"id": step.id}
    if step.depends_on:
        data["dependsOn"] = list(step.depends_on)
    data["event"] = _event_def_to_dict(step.event)
    if step.context:
        data["context"] = _sorted_map(step.context)
    if step.criteria:
        data["criteria"] = step.criteria
    data["command"] = _command_to_dict(step.command)
    return data


def _step_from_dict(data: Optional[Mapping[str, Any]]) -> Step:
    data = data or {}
    return Step(
        id=data.get("id") or "",
        depends_on=list(data.get("dependsOn") or []),
        event=_event_def_from_dict(data.get("event")),
        context=_string_map(data.get("context")),
        criteria=data.get("criteria") or "",
        command=_command_from_dict(data.get("command")),
    )


@dataclass
class Action:
    """A command issued for a step of a running flow, with its history."""

    id: str = ""
    name: str = ""
    pack_name: str = ""
    pack_labels: dict[str, str] = field(default_factory=dict)
    input: Any = None
    state: State = field(default_factory=State)
    states: list[State] = field(default_factory=list)
    correlation_id: str = ""
    flow_name: str = ""
    flow_uuid: str = ""
    step_id: str = ""
    context: dict[str, str] = field(default_factory=dict)
    trigger: Event = field(default_factory=Event)
    result: Event = field(default_factory=Event)

    def to_dict(self) -> dict[str, Any]:
        """The action as it appears in API responses."""
        data: dict[str, Any] = {"id": self.id, "name": self.name, "packName": self.pack_name}
        if self.pack_labels:
            data["packLabels"] = _sorted_map(self.pack_labels)
        if self.input is not None:
            data["input"] = self.input
        data["state"] = _state_to_dict(self.state)
        if self.states:
            data["states"] = [_state_to_dict(state) for state in self.states]
        data["correlationId"] = self.correlation_id
        data["flowName"] = self.flow_name
        data["flowUUID"] = self.flow_uuid
        data["stepId"] = self.step_id
        if self.context:
            data["context"] = _sorted_map(self.context)
        data["trigger"] = _event_to_dict(self.trigger)
        data["result"] = _event_to_dict(self.result)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Action":
        """Read an action from API JSON or from a stored document."""
        return cls(
            id=_first_key(data, "id", "_id"),
            name=data.get("name") or "",
            pack_name=data.get("packName") or "",
            pack_labels=_string_map(data.get("packLabels")),
            input=data.get("input"),
            state=_state_from_dict(data.get("state")),
            states=[_state_from_dict(state) for state in data.get("states") or []],
            correlation_id=data.get("correlationId") or "",
            flow_name=data.get("flowName") or "",
            flow_uuid=data.get("flowUUID") or "",
            step_id=data.get("stepId") or "",
            context=_string_map(data.get("context")),
            trigger=_event_from_dict(data.get("trigger")),
            result=_event_from_dict(data.get("result")),
        )


@dataclass
class Flow:
    """A flow definition together with the actions of one execution of it."""

    name: str = ""
    uuid: str = ""
    correlation_id: str = ""
    steps: list[Step] = field(default_factory=list)
    actions: dict[str, Action] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """The flow as it appears in API responses."""
        return {
            "name": self.name,
            "uuid": self.uuid,
            "correlationId": self.correlation_id,
            "steps": [_step_to_dict(step) for step in self.steps],
            "actions": {step_id: self.actions[step_id].to_dict() for step_id in sorted(self.actions)},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Flow":
        """Read a flow from API JSON or from a stored document."""
        return cls(
            name=data.get("name") or "",
            uuid=data.get("uuid") or "",
            correlation_id=data.get("correlationId") or "",
            steps=[_step_from_dict(step) for step in data.get("steps") or []],
            actions={
                step_id: Action.from_dict(action)
                for step_id, action in (data.get("actions") or {}).items()
            },
        )