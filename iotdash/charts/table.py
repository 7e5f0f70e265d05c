"""Table charts: one row per device, one column per dimension/metric."""

from __future__ import annotations

from typing import Dict, List, Tuple

from ..domain.models import ChartType
from ..domain.utils.validation import to_finite_float
from ..pipeline.shaping import paginate, shape_rows, sort_rows
from ..pipeline.styles import matching_rule
from .context import ShapingContext
from .results import ChartResult, TableResult


class TableShaper:
    """Rows with per-metric aggregation, sorting, paging and cell badges.

    Metric cells default to LAST. Missing metrics stay as None cells; rows
    are never dropped. Only numeric cells receive a threshold badge color.
    """

    id = "table"
    chart_types: Tuple[ChartType, ...] = (ChartType.TABLE,)
    needs_data = True

    def shape(self, ctx: ShapingContext) -> ChartResult:
        chart = ctx.chart
        style = chart.style
        rows = shape_rows(ctx.devices, chart.metrics, chart.aggregations)
        columns = list(dict.fromkeys([*chart.dimensions, *chart.metrics]))
        headers = {col: ctx.meta(col)[0] for col in columns}

        query = ctx.table_query
        rows = sort_rows(rows, query.sort_key, query.sort_direction)
        total = len(rows)
        page, page_count = 1, 1
        if style.enable_pagination:
            rows, page, page_count = paginate(rows, query.page, style.page_size)

        cell_colors: List[Dict[str, str]] = []
        for row in rows:
            colors: Dict[str, str] = {}
            for col in columns:
                if to_finite_float(row.get(col)) is None:
                    continue
                rule = matching_rule(row[col], style.thresholds)
                if rule is not None:
                    colors[col] = rule.color
            cell_colors.append(colors)

        return ctx.base_result(
            "table",
            table=TableResult(
                columns=columns,
                headers=headers,
                rows=rows,
                cell_colors=cell_colors,
                total_rows=total,
                page=page,
                page_count=page_count,
                page_size=style.page_size if style.enable_pagination else None,
                show_row_number=style.show_row_number,
            ),
        )
