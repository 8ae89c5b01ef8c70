"""View navigation between the landing page, dashboard and historic summary."""

import logging
from enum import Enum
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class View(Enum):
    """Navigation targets, valued by their route path."""

    LANDING = "/"
    BLUEPRINT = "/blueprint"
    HISTORIC_SUMMARY = "/historic-summary"

    @classmethod
    def from_path(cls, path: str) -> "View":
        normalized = "/" + path.strip("/")
        for view in cls:
            if view.value == normalized:
                return view
        raise ValueError(f"Unknown route: {path}")


class Navigator:
    """Tracks the current view and notifies a listener on every change."""

    def __init__(
        self,
        initial: View = View.LANDING,
        on_navigate: Optional[Callable[[View], None]] = None,
    ):
        self._current = initial
        self._history: List[View] = [initial]
        self.on_navigate = on_navigate

    @property
    def current(self) -> View:
        return self._current

    @property
    def history(self) -> List[View]:
        return list(self._history)

    def navigate(self, view: View) -> None:
        logger.info(f"Navigate: {self._current.value} -> {view.value}")
        self._current = view
        self._history.append(view)
        if self.on_navigate:
            self.on_navigate(view)

    def back_to_dashboard(self) -> None:
        """The historic summary's back button."""
        self.navigate(View.BLUEPRINT)
