"""Drill-down stack and navigation state.

Resident filters (what the user set on a dashboard reached through the menu)
and drill-down frames are kept apart. While drilled in, the dashboard on top
of the stack sees its resident filters, overlaid by the frame's seeded
filters, overlaid by whatever the user changed after entering the frame.
Popping the frame discards the last two layers only.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from ..domain.models import DrillDownFrame

logger = logging.getLogger(__name__)


class NavigationError(LookupError):
    """An interaction points at a dashboard that does not exist."""

    def __init__(self, target_id: Optional[str], message: Optional[str] = None) -> None:
        self.target_id = target_id
        super().__init__(message or f"Target dashboard '{target_id}' not found")


class DrillDownStack:
    """LIFO stack of drill-down frames."""

    def __init__(self) -> None:
        self._frames: List[DrillDownFrame] = []

    def push(self, frame: DrillDownFrame) -> None:
        self._frames.append(frame)

    def pop(self) -> Optional[DrillDownFrame]:
        """Remove exactly one frame; None when already at the root."""
        if not self._frames:
            return None
        return self._frames.pop()

    def peek(self) -> Optional[DrillDownFrame]:
        return self._frames[-1] if self._frames else None

    def clear(self) -> None:
        self._frames.clear()

    @property
    def depth(self) -> int:
        return len(self._frames)

    @property
    def frames(self) -> Tuple[DrillDownFrame, ...]:
        return tuple(self._frames)

    def __len__(self) -> int:
        return len(self._frames)


class NavigationState:
    """Single writer of the drill-down stack and the filter state.

    Parameters
    ----------
    home_dashboard_id: str, optional
        Dashboard shown when the stack is empty.
    """

    def __init__(self, home_dashboard_id: Optional[str] = None) -> None:
        self.stack = DrillDownStack()
        self.menu_section: Optional[str] = None
        self.home_dashboard_id = home_dashboard_id
        self._resident: Dict[str, Dict[str, Any]] = {}
        # One dict per stack frame: filters changed while that frame is on top.
        self._drilled_changes: List[Dict[str, Any]] = []

    @property
    def drilled_in(self) -> bool:
        return self.stack.depth > 0

    def active_dashboard_id(self) -> Optional[str]:
        """Dashboard to render: the top frame's target, else the home one."""
        frame = self.stack.peek()
        if frame is not None:
            return frame.target_dashboard_id
        return self.home_dashboard_id

    def resident_filters(self, dashboard_id: str) -> Dict[str, Any]:
        return dict(self._resident.get(dashboard_id, {}))

    def effective_filters(self, dashboard_id: str) -> Dict[str, Any]:
        """Filters the pipeline should apply when rendering ``dashboard_id``."""
        merged = self.resident_filters(dashboard_id)
        frame = self.stack.peek()
        if frame is not None and frame.target_dashboard_id == dashboard_id:
            merged.update(frame.filters)
            merged.update(self._drilled_changes[-1])
        return merged

    def set_filter(self, dashboard_id: str, key: str, value: Any) -> Dict[str, Any]:
        """Record a filter-widget or local-toggle change and return the result.

        While the top frame targets ``dashboard_id`` the change belongs to the
        frame and is dropped on :meth:`back`.
        """
        frame = self.stack.peek()
        if frame is not None and frame.target_dashboard_id == dashboard_id:
            self._drilled_changes[-1][key] = value
        else:
            self._resident.setdefault(dashboard_id, {})[key] = value
        logger.debug(
            "navigation.filter",
            extra={"dashboard_id": dashboard_id, "key": key, "drilled_in": self.drilled_in},
        )
        return self.effective_filters(dashboard_id)

    def drill_into(self, frame: DrillDownFrame) -> None:
        self.stack.push(frame)
        self._drilled_changes.append({})
        logger.info(
            "navigation.drill",
            extra={
                "target": frame.target_dashboard_id,
                "depth": self.stack.depth,
                "filters": list(frame.filters),
            },
        )

    def back(self) -> Optional[DrillDownFrame]:
        """Pop exactly one frame, discarding filters changed inside it."""
        frame = self.stack.pop()
        if frame is not None:
            self._drilled_changes.pop()
            logger.info("navigation.back", extra={"depth": self.stack.depth})
        return frame

    def select_menu(self, section: str, dashboard_id: Optional[str] = None) -> None:
        """Primary-menu navigation always clears the whole stack."""
        self.stack.clear()
        self._drilled_changes.clear()
        self.menu_section = section
        if dashboard_id is not None:
            self.home_dashboard_id = dashboard_id
        logger.info(
            "navigation.menu",
            extra={"section": section, "dashboard_id": self.home_dashboard_id},
        )
