"""Pytest configuration for test suite.

Ensures the project root is on ``sys.path`` so ``import iotdash`` resolves to
the local sources regardless of the working directory pytest chooses, and
provides a small dashboard catalog shared by the server and HTTP tests.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict

import pytest


def _ensure_project_root_on_syspath() -> None:
    project_root = Path(__file__).resolve().parents[1]
    project_root_str = str(project_root)
    if project_root_str not in sys.path:
        # Prepend to prefer local sources over site-packages
        sys.path.insert(0, project_root_str)


_ensure_project_root_on_syspath()


@pytest.fixture(autouse=True)
def reset_shaper_registry():
    """Reset the chart shaper registry before each test.

    Tests that register replacement shapers must not leak them.
    """
    from iotdash.charts import reset_shapers

    reset_shapers()
    yield


def _history(values, start_minute: int = 0):
    return [
        {"timestamp": f"10:{start_minute + i:02d}", "value": v}
        for i, v in enumerate(values)
    ]


@pytest.fixture
def catalog_data() -> Dict[str, Any]:
    """Raw camelCase catalog as the dashboard editor would save it."""
    return {
        "devices": [
            {
                "id": "DEV-1",
                "name": "Gateway",
                "type": "Gateway",
                "status": "online",
                "location": "Plant A",
                "metrics": {
                    "cpu": _history([85.0, 90.0, 95.0]),
                    "temperature": _history([20.0, 21.0, 22.0]),
                },
            },
            {
                "id": "DEV-2",
                "name": "Sensor-2",
                "type": "Sensor",
                "status": "online",
                "location": "Plant B",
                "metrics": {
                    "cpu": _history([10.0, 20.0, 30.0]),
                    "temperature": _history([30.0, 31.0, 32.0]),
                },
            },
            {
                "id": "DEV-3",
                "name": "Sensor-3",
                "type": "Sensor",
                "status": "offline",
                "location": "Plant B",
                "metrics": {"cpu": _history([99.0])},
            },
        ],
        "views": [
            {
                "id": "view-1",
                "name": "Telemetry",
                "fields": ["cpu", "temperature"],
                "model": {
                    "cpu": {"alias": "CPU", "unit": "%"},
                    "temperature": {"alias": "Temperature", "unit": "°C"},
                },
                "calculatedFields": [
                    {"name": "fahrenheit", "expression": "temperature * 1.8 + 32"}
                ],
            }
        ],
        "charts": [
            {
                "id": "chart-bar",
                "viewId": "view-1",
                "name": "CPU by device",
                "type": "bar",
                "metrics": ["cpu"],
                "dimensions": ["name"],
                "aggregations": {"cpu": "LAST"},
                "style": {
                    "thresholds": [
                        {"operator": ">", "value": 80, "color": "red"},
                        {"operator": ">", "value": 50, "color": "amber"},
                    ]
                },
                "interaction": {
                    "type": "navigate_dashboard",
                    "targetId": "dash-x",
                    "params": [{"sourceKey": "name", "targetKey": "device_name"}],
                },
            },
            {
                "id": "chart-kpi",
                "viewId": "view-1",
                "name": "Average temperature",
                "type": "kpi",
                "metrics": ["temperature"],
                "aggregations": {"temperature": "AVG"},
            },
            {
                "id": "chart-table",
                "viewId": "view-1",
                "name": "Devices",
                "type": "table",
                "metrics": ["cpu", "fahrenheit"],
                "dimensions": ["name"],
                "style": {"enablePagination": True, "pageSize": 1},
            },
            {
                "id": "chart-broken-link",
                "type": "pie",
                "metrics": ["cpu"],
                "interaction": {"type": "navigate_dashboard", "targetId": "missing"},
            },
        ],
        "dashboards": [
            {
                "id": "dash-main",
                "name": "Overview",
                "charts": ["chart-bar", "chart-kpi", "chart-table", "chart-broken-link"],
                "layout": [
                    {"i": "chart-bar", "x": 0, "y": 0, "w": 4, "h": 4},
                    {"i": "chart-table", "x": 4, "y": 0, "w": 8, "h": 4},
                ],
            },
            {"id": "dash-x", "name": "Device detail", "charts": ["chart-kpi"]},
        ],
        "alarmRules": [
            {
                "id": "R1",
                "name": "High CPU",
                "metricKey": "cpu",
                "operator": ">",
                "threshold": 80,
                "severity": "critical",
            }
        ],
        "homeDashboardId": "dash-main",
    }


@pytest.fixture
def catalog(catalog_data):
    from iotdash.config.models import AppConfig

    return AppConfig.model_validate(catalog_data)
