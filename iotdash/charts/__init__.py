"""Chart-type shaper registry and base API.

Every :class:`~iotdash.domain.models.ChartType` is served by exactly one
registered shaper. Shapers translate a :class:`ShapingContext` (filtered,
enriched devices plus chart/view configuration) into a render-ready
:class:`ChartResult`. Adding a chart type means adding one shaper and
registering it.
"""

# pylint: disable=too-few-public-methods

from __future__ import annotations

import logging
from typing import Dict, Iterable, Protocol, Tuple

from ..domain.models import ChartType
from .context import ShapingContext, TableQuery
from .results import CategoryPoint, ChartResult, SeriesResult, TableResult

logger = logging.getLogger(__name__)

__all__ = [
    "CategoryPoint",
    "ChartResult",
    "ChartShaper",
    "SeriesResult",
    "ShapingContext",
    "TableQuery",
    "TableResult",
    "all_shapers",
    "get",
    "register",
    "reset_shapers",
]


class ChartShaper(Protocol):
    """Chart shaper contract.

    A shaper declares:
    - `id`: unique identifier (e.g., "aligned-series")
    - `chart_types`: the chart types it serves
    - `needs_data`: whether an empty device set short-circuits to "no data"
    """

    id: str
    chart_types: Tuple[ChartType, ...]
    needs_data: bool

    def shape(self, ctx: ShapingContext) -> ChartResult:
        """Produce the render-ready result for ``ctx.chart``."""
        raise NotImplementedError


_registry: Dict[ChartType, ChartShaper] = {}


def register(shaper: ChartShaper) -> None:
    """Register a shaper for each chart type it declares.

    A later registration for the same chart type replaces the earlier one.
    """
    for chart_type in shaper.chart_types:
        _registry[chart_type] = shaper
    logger.debug(
        "charts.register",
        extra={"shaper": shaper.id, "types": [t.value for t in shaper.chart_types]},
    )


def get(chart_type: ChartType) -> ChartShaper:
    """Retrieve the shaper for ``chart_type``.

    Raises
    ------
    KeyError
        If no shaper is registered for the chart type.
    """
    return _registry[chart_type]


def all_shapers() -> Iterable[ChartShaper]:
    """Iterate over distinct registered shapers."""
    seen: Dict[str, ChartShaper] = {}
    for shaper in _registry.values():
        seen.setdefault(shaper.id, shaper)
    return seen.values()


def reset_shapers() -> None:
    """Reset the registry to the built-in shapers.

    Clears the in-memory registry and registers the built-in shapers
    explicitly without relying on import-time side effects.
    """
    _registry.clear()
    from .categorical import BarShaper, PieShaper, RadarShaper  # noqa: WPS433
    from .media import ContainerShaper, ContentShaper  # noqa: WPS433
    from .scalar import ScalarShaper  # noqa: WPS433
    from .series import AlignedSeriesShaper  # noqa: WPS433
    from .table import TableShaper  # noqa: WPS433

    for shaper in (
        AlignedSeriesShaper(),
        BarShaper(),
        PieShaper(),
        RadarShaper(),
        ScalarShaper(),
        TableShaper(),
        ContentShaper(),
        ContainerShaper(),
    ):
        register(shaper)
    missing = [t.value for t in ChartType if t not in _registry]
    if missing:  # pragma: no cover
        logger.warning("charts.unregistered_types", extra={"types": missing})


reset_shapers()
