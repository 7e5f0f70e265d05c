"""Dashboard grid layout: fallback placement and table resize.

The grid has 12 columns and 60 px rows.
"""

from __future__ import annotations

import math
from typing import Callable, List, Optional, Sequence, Tuple

from ..domain.models import ChartConfig, Dashboard, GridLayoutItem

GRID_COLUMNS = 12
GRID_ROW_PX = 60
DEFAULT_ITEM_ROWS = 4

# Table resize: pixel height per table row and header/pager overhead.
ROW_PX = 40
OVERHEAD_PX = 110

_SPAN_WIDTHS = {1: 4, 2: 8, 3: 12}


def table_height(page_size: int) -> int:
    """Grid rows needed to show ``page_size`` table rows without scrolling.

    Examples
    --------
    >>> table_height(10)
    9
    >>> table_height(5)
    6
    """
    return math.ceil((max(1, page_size) * ROW_PX + OVERHEAD_PX) / GRID_ROW_PX)


def resize_layout(
    layout: Sequence[GridLayoutItem], chart_id: str, page_size: int
) -> Tuple[List[GridLayoutItem], bool]:
    """Return ``(layout, changed)`` with only ``chart_id``'s height updated."""
    height = table_height(page_size)
    changed = False
    updated: List[GridLayoutItem] = []
    for item in layout:
        if item.i == chart_id and item.h != height:
            item = item.model_copy(update={"h": height})
            changed = True
        updated.append(item)
    return updated, changed


def default_layout(
    dashboard: Dashboard,
    resolve_chart: Callable[[str], Optional[ChartConfig]],
) -> List[GridLayoutItem]:
    """Saved layout if present, else a left-to-right flow by column span."""
    if dashboard.layout:
        return list(dashboard.layout)
    items: List[GridLayoutItem] = []
    x = y = 0
    for chart_id in dashboard.charts:
        chart = resolve_chart(chart_id)
        span = chart.style.col_span if chart is not None else 1
        width = _SPAN_WIDTHS.get(span, _SPAN_WIDTHS[1])
        if x + width > GRID_COLUMNS:
            x, y = 0, y + DEFAULT_ITEM_ROWS
        items.append(GridLayoutItem(i=chart_id, x=x, y=y, w=width, h=DEFAULT_ITEM_ROWS))
        x += width
        if x >= GRID_COLUMNS:
            x, y = 0, y + DEFAULT_ITEM_ROWS
    return items
