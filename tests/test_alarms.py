"""Tests for alarm rule evaluation."""

import itertools
from datetime import datetime, timezone

import pytest

from iotdash.domain.models import AlarmRule, Device, MetricSample
from iotdash.realtime import AlarmEngine
from iotdash.realtime.alarms import ACKNOWLEDGED


def _device(device_id, value, device_type="Sensor", status="online"):
    return Device(
        id=device_id,
        name=device_id,
        type=device_type,
        status=status,
        metrics={"cpu": [MetricSample(timestamp="10:00", value=value)]},
    )


def _engine(rules, **kwargs):
    counter = itertools.count(1)
    return AlarmEngine(
        rules,
        id_factory=lambda: f"evt-{next(counter)}",
        clock=lambda: datetime(2024, 5, 1, tzinfo=timezone.utc),
        **kwargs,
    )


HIGH_CPU = AlarmRule(id="R1", name="High CPU", metric_key="cpu", operator=">", threshold=80)


def test_fires_once_while_active():
    """An active event suppresses refiring for the same device and rule."""
    engine = _engine([HIGH_CPU])
    devices = [_device("A", 90.0), _device("B", 10.0)]
    fired = engine.evaluate(devices)
    assert [(e.device_id, e.value) for e in fired] == [("A", 90.0)]
    assert engine.evaluate(devices) == []
    assert len(engine.active_events()) == 1
    assert fired[0].timestamp == "2024-05-01T00:00:00+00:00"


def test_acknowledge_allows_refire():
    """Acknowledged events no longer suppress the rule."""
    engine = _engine([HIGH_CPU])
    (event,) = engine.evaluate([_device("A", 90.0)])
    acked = engine.acknowledge(event.id)
    assert acked.status == ACKNOWLEDGED
    fired = engine.evaluate([_device("A", 91.0)])
    assert len(fired) == 1
    assert [e.id for e in engine.events] == ["evt-2", "evt-1"]


def test_acknowledge_unknown_event():
    """Unknown ids raise KeyError."""
    with pytest.raises(KeyError):
        _engine([HIGH_CPU]).acknowledge("nope")


def test_device_type_and_status_scope():
    """Rules only see online devices of their type, or all types."""
    rule = HIGH_CPU.model_copy(update={"device_type": "Gateway"})
    engine = _engine([rule])
    fired = engine.evaluate(
        [
            _device("A", 90.0, device_type="Sensor"),
            _device("B", 90.0, device_type="Gateway"),
            _device("C", 90.0, device_type="Gateway", status="offline"),
        ]
    )
    assert [e.device_id for e in fired] == ["B"]


def test_disabled_rules_and_missing_metrics_are_ignored():
    """Disabled rules never fire; devices without the metric are skipped."""
    disabled = HIGH_CPU.model_copy(update={"id": "R2", "enabled": False})
    other = AlarmRule(id="R3", metric_key="memory", threshold=1)
    engine = _engine([disabled, other])
    assert engine.evaluate([_device("A", 99.0)]) == []


def test_event_list_is_capped_newest_first():
    """Only the newest events up to capacity are retained."""
    engine = _engine([HIGH_CPU], capacity=2)
    engine.evaluate([_device("A", 90.0), _device("B", 90.0), _device("C", 90.0)])
    assert [e.device_id for e in engine.events] == ["C", "B"]


def test_unknown_operator_never_fires():
    """A rule with an unsupported operator is inert."""
    rule = HIGH_CPU.model_copy(update={"operator": "~"})
    assert _engine([rule]).evaluate([_device("A", 90.0)]) == []
