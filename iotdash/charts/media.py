"""Static content (text, image) and rotating container charts."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from ..domain.models import ChartType, ContainerConfig
from .context import ShapingContext
from .results import ChartResult

logger = logging.getLogger(__name__)

DEFAULT_ROTATION_SECONDS = 5


def active_child_index(container: Optional[ContainerConfig], elapsed_seconds: float) -> Optional[int]:
    """Index of the child shown after ``elapsed_seconds`` of rotation.

    Returns None for a container without children.

    Examples
    --------
    >>> active_child_index(ContainerConfig(child_chart_ids=["a", "b"], interval=5), 12)
    0
    >>> active_child_index(ContainerConfig(child_chart_ids=["a", "b"], interval=5), 7)
    1
    """
    if container is None or not container.child_chart_ids:
        return None
    count = len(container.child_chart_ids)
    if count == 1:
        return 0
    interval = container.interval if container.interval > 0 else DEFAULT_ROTATION_SECONDS
    return int(max(0.0, elapsed_seconds) // interval) % count


class ContentShaper:
    """Text and image charts render their configured content verbatim."""

    id = "content"
    chart_types: Tuple[ChartType, ...] = (ChartType.TEXT, ChartType.IMAGE)
    needs_data = False

    def shape(self, ctx: ShapingContext) -> ChartResult:
        return ctx.base_result("content", content=ctx.chart.content)


class ContainerShaper:
    """Container charts render the active child through the same pipeline."""

    id = "container"
    chart_types: Tuple[ChartType, ...] = (ChartType.CONTAINER,)
    needs_data = False

    def shape(self, ctx: ShapingContext) -> ChartResult:
        container = ctx.chart.container
        index = active_child_index(container, ctx.elapsed_seconds)
        if container is None or index is None:
            return ctx.base_result("container", no_data=True)

        child_id = container.child_chart_ids[index]
        child = ctx.render_child(child_id) if ctx.render_child is not None else None
        if child is None:
            logger.info(
                "charts.container.child_missing",
                extra={"chart_id": ctx.chart.id, "child_id": child_id},
            )
        return ctx.base_result(
            "container",
            child_ids=list(container.child_chart_ids),
            active_child_id=child_id,
            child=child,
            no_data=child is None,
        )
