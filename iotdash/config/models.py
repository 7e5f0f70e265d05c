"""Config models and loader.

:class:`AppConfig` is the JSON catalog handed over by the configuration
editor: devices, data views, charts, dashboards and alarm rules. Nested
models accept the editor's camelCase keys as well as snake_case. JSON
parsing prefers `orjson` when available and falls back to the standard
library's `json` module otherwise.

:class:`EnvSettings` carries runtime knobs from the environment (prefix
``IOTDASH_``) and an optional ``.env`` file.
"""

from __future__ import annotations

import json as _json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

try:
    import orjson as _orjson_mod  # type: ignore[assignment]
except ImportError:  # pragma: no cover - optional dependency
    _orjson_mod = None  # type: ignore[assignment]
    _loads_orjson: Optional[Callable[[bytes], Any]] = None
else:

    def _loads_orjson(buf: bytes) -> Any:
        loader = getattr(_orjson_mod, "loads")  # type: ignore[assignment]
        return loader(buf)


from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.models import AlarmRule, ChartConfig, Dashboard, DataView, Device


class AppConfig(BaseModel):
    """Top-level dashboard catalog.

    Attributes
    ----------
    devices: List[Device]
        Initial device snapshot, including metric histories.
    views: List[DataView]
        Data views referenced by charts through ``view_id``.
    charts: List[ChartConfig]
        Chart definitions referenced by dashboards and containers.
    dashboards: List[Dashboard]
        Dashboards reachable from the menu or by drill-down.
    alarm_rules: List[AlarmRule]
        Rules evaluated after every tick.
    home_dashboard_id: Optional[str]
        Dashboard shown at start; defaults to the first dashboard.
    """

    devices: List[Device] = Field(default_factory=list)
    views: List[DataView] = Field(default_factory=list)
    charts: List[ChartConfig] = Field(default_factory=list)
    dashboards: List[Dashboard] = Field(default_factory=list)
    alarm_rules: List[AlarmRule] = Field(default_factory=list, alias="alarmRules")
    home_dashboard_id: Optional[str] = Field(None, alias="homeDashboardId")

    model_config = {"populate_by_name": True}

    def view_index(self) -> Dict[str, DataView]:
        return {v.id: v for v in self.views}

    def chart_index(self) -> Dict[str, ChartConfig]:
        return {c.id: c for c in self.charts}

    def dashboard_index(self) -> Dict[str, Dashboard]:
        return {d.id: d for d in self.dashboards}

    def default_dashboard_id(self) -> Optional[str]:
        if self.home_dashboard_id:
            return self.home_dashboard_id
        return self.dashboards[0].id if self.dashboards else None

    @staticmethod
    def load(path: Path) -> "AppConfig":
        """Load the catalog from a JSON file."""
        raw = path.read_bytes()
        if _loads_orjson is not None:
            data = _loads_orjson(raw)
        else:
            data = _json.loads(raw.decode("utf-8"))
        return AppConfig.model_validate(data)


class EnvSettings(BaseSettings):
    """Environment-driven settings and .env support.

    Attributes
    ----------
    log_level: str
        Logging level name (e.g., "DEBUG", "INFO"). Defaults to "INFO".
    tick_interval_seconds: float
        Period of the metric/alarm tick.
    history_capacity: int
        Maximum samples retained per metric history.
    event_capacity: int
        Maximum retained alarm events.
    render_cache_size: int
        Number of memoized chart renders.
    http_token: Optional[str]
        Bearer token required by the HTTP transport when set.
    cors_origins: Optional[str]
        Comma-separated origins allowed by CORS.
    """

    model_config = SettingsConfigDict(env_file=".env", env_prefix="IOTDASH_")

    log_level: str = Field("INFO")
    tick_interval_seconds: float = Field(5.0, gt=0)
    history_capacity: int = Field(20, ge=1)
    event_capacity: int = Field(100, ge=1)
    render_cache_size: int = Field(256, ge=1)
    http_token: Optional[str] = None
    cors_origins: Optional[str] = None
