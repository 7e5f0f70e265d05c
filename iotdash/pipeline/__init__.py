"""Metric-to-visualization pipeline.

Stages run in order: :mod:`.filters` (filter state and time window),
:mod:`.calculated` (derived metrics), :mod:`iotdash.charts` shapers (series,
rows, scalars) and :mod:`.styles` (threshold colors, reference lines). The
entry point that chains them and memoizes per chart lives in :mod:`.render`.
"""
