"""Tests for grid layout placement and table resize."""

import pytest

from iotdash.domain.models import ChartConfig, ChartStyle, ChartType, Dashboard, GridLayoutItem
from iotdash.interaction.layout import default_layout, resize_layout, table_height


@pytest.mark.parametrize("page_size, rows", [(1, 3), (5, 6), (10, 9), (20, 16), (0, 3)])
def test_table_height(page_size, rows):
    """Height covers the rows plus header and pager overhead."""
    assert table_height(page_size) == rows


def test_resize_touches_only_the_matching_item():
    """Other items are returned unchanged."""
    layout = [GridLayoutItem(i="a", h=4), GridLayoutItem(i="t", x=4, h=4)]
    updated, changed = resize_layout(layout, "t", 10)
    assert changed is True
    assert updated[0] is layout[0]
    assert updated[1].h == 9
    assert updated[1].x == 4
    assert layout[1].h == 4


def test_resize_same_height_is_unchanged():
    """A resize to the current height reports no change."""
    layout = [GridLayoutItem(i="t", h=9)]
    _, changed = resize_layout(layout, "t", 10)
    assert changed is False


def test_default_layout_flows_by_column_span():
    """Charts wrap to a new row once twelve columns are used."""
    charts = {
        "a": ChartConfig(id="a", type=ChartType.KPI),
        "b": ChartConfig(id="b", type=ChartType.LINE, style=ChartStyle(col_span=2)),
        "c": ChartConfig(id="c", type=ChartType.TABLE, style=ChartStyle(col_span=3)),
    }
    dashboard = Dashboard(id="d", charts=["a", "b", "c", "unknown"])
    items = default_layout(dashboard, charts.get)
    placed = [(item.i, item.x, item.y, item.w) for item in items]
    assert placed == [
        ("a", 0, 0, 4),
        ("b", 4, 0, 8),
        ("c", 0, 4, 12),
        ("unknown", 0, 8, 4),
    ]


def test_default_layout_prefers_saved_layout():
    """A saved layout is returned as is."""
    saved = [GridLayoutItem(i="a", x=2, y=1, w=6, h=3)]
    dashboard = Dashboard(id="d", charts=["a"], layout=saved)
    assert default_layout(dashboard, lambda _: None) == saved


def test_default_layout_never_overflows_the_grid():
    """An item that would cross column twelve starts the next row instead."""
    charts = {
        "wide": ChartConfig(id="wide", type=ChartType.LINE, style=ChartStyle(col_span=2)),
        "also_wide": ChartConfig(id="also_wide", type=ChartType.BAR, style=ChartStyle(col_span=2)),
    }
    dashboard = Dashboard(id="d", charts=["wide", "also_wide"])
    items = default_layout(dashboard, charts.get)
    assert [(item.i, item.x, item.y) for item in items] == [("wide", 0, 0), ("also_wide", 0, 4)]
    assert all(item.x + item.w <= 12 for item in items)
