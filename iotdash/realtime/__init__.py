"""Live device state: versioned store, metric tick and alarm evaluation."""

from .alarms import AlarmEngine
from .store import DeviceStore, advance_devices
from .ticker import Ticker

__all__ = ["AlarmEngine", "DeviceStore", "Ticker", "advance_devices"]
