"""Click handling and drill-down navigation.

:mod:`.engine` turns raw chart clicks into filter changes, drill-down frames,
modal requests, links or layout updates; :mod:`.drilldown` owns the
navigation stack and the per-dashboard resident filters.
"""

from .drilldown import DrillDownStack, NavigationError, NavigationState
from .engine import (
    InteractionEngine,
    InteractionOutcome,
    ModalRequest,
    OutcomeKind,
    normalize_click,
    resolve_params,
)

__all__ = [
    "DrillDownStack",
    "InteractionEngine",
    "InteractionOutcome",
    "ModalRequest",
    "NavigationError",
    "NavigationState",
    "OutcomeKind",
    "normalize_click",
    "resolve_params",
]
