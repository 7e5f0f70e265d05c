"""Alarm rule evaluation against the latest metric values."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Sequence

from ..domain.models import ALL, AlarmEvent, AlarmRule, Device, DeviceStatus
from ..domain.utils.expression import COMPARISON_OPERATORS, compare

logger = logging.getLogger(__name__)

EVENT_CAPACITY = 100
ACTIVE = "active"
ACKNOWLEDGED = "acknowledged"


def _new_event_id() -> str:
    return f"evt-{uuid.uuid4().hex[:12]}"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def rule_applies(rule: AlarmRule, device: Device) -> bool:
    """Enabled rule, online device, and a matching (or wildcard) device type."""
    if not rule.enabled or device.status != DeviceStatus.ONLINE:
        return False
    return rule.device_type in ("", ALL) or rule.device_type == device.type


class AlarmEngine:
    """Owns the alarm rules and the capped, newest-first event list.

    Parameters
    ----------
    rules: Iterable[AlarmRule]
        Rules in evaluation order.
    capacity: int
        Maximum number of retained events.
    id_factory / clock: callable, optional
        Injection points for deterministic event ids and timestamps.
    """

    def __init__(
        self,
        rules: Iterable[AlarmRule] = (),
        capacity: int = EVENT_CAPACITY,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.rules: List[AlarmRule] = list(rules)
        self.capacity = capacity
        self._events: List[AlarmEvent] = []
        self._id_factory = id_factory or _new_event_id
        self._clock = clock or _now
        for rule in self.rules:
            if rule.operator not in COMPARISON_OPERATORS:
                logger.warning(
                    "alarms.rule.unknown_operator",
                    extra={"rule_id": rule.id, "operator": rule.operator},
                )

    @property
    def events(self) -> List[AlarmEvent]:
        return list(self._events)

    def active_events(self) -> List[AlarmEvent]:
        return [e for e in self._events if e.status == ACTIVE]

    def evaluate(self, devices: Sequence[Device]) -> List[AlarmEvent]:
        """Fire rules against the latest values; return the new events.

        A firing is suppressed while an active event exists for the same
        ``(device_id, rule_id)`` pair.
        """
        active = {(e.device_id, e.rule_id) for e in self._events if e.status == ACTIVE}
        timestamp = self._clock().isoformat()
        fired: List[AlarmEvent] = []
        for rule in self.rules:
            for device in devices:
                if not rule_applies(rule, device):
                    continue
                history = device.metrics.get(rule.metric_key)
                if not history:
                    continue
                latest = history[-1].value
                if not compare(latest, rule.operator, rule.threshold):
                    continue
                if (device.id, rule.id) in active:
                    continue
                active.add((device.id, rule.id))
                fired.append(
                    AlarmEvent(
                        id=self._id_factory(),
                        rule_id=rule.id,
                        rule_name=rule.name,
                        device_id=device.id,
                        device_name=device.name,
                        metric_key=rule.metric_key,
                        value=latest,
                        threshold=rule.threshold,
                        severity=rule.severity,
                        timestamp=timestamp,
                    )
                )
        if fired:
            self._events = (list(reversed(fired)) + self._events)[: self.capacity]
            logger.info(
                "alarms.fired",
                extra={"count": len(fired), "rules": sorted({e.rule_id for e in fired})},
            )
        return fired

    def acknowledge(self, event_id: str) -> AlarmEvent:
        """Mark an event acknowledged so its rule may fire again.

        Raises
        ------
        KeyError
            If no event has ``event_id``.
        """
        for i, event in enumerate(self._events):
            if event.id == event_id:
                acked = event.model_copy(update={"status": ACKNOWLEDGED})
                self._events[i] = acked
                logger.info("alarms.acknowledged", extra={"event_id": event_id})
                return acked
        raise KeyError(event_id)
