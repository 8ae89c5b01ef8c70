"""Dashboard view state: active tab, selected zone and the session snapshot.

State is an immutable ``DashboardState``; user actions are pure functions
returning a new state. ``DashboardSession`` owns the current state for one
dashboard view and generates its snapshot exactly once.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional, Union

from .generators import MetricSnapshot, TelemetryGenerator, Zone

logger = logging.getLogger(__name__)


class DashboardTab(Enum):
    """Dashboard tabs, valued by their route id."""

    BLUEPRINT = "blueprint"
    ANALYTICS = "analytics"
    EQUIPMENT = "equipment"
    PREDICTIONS = "predictions"


@dataclass(frozen=True)
class DashboardState:
    """One dashboard view's state. Tab and zone selection are independent."""

    snapshot: MetricSnapshot
    active_tab: DashboardTab = DashboardTab.BLUEPRINT
    selected_zone: Optional[str] = None


def select_tab(state: DashboardState, tab: Union[DashboardTab, str]) -> DashboardState:
    """Switch the active tab. Zone selection is kept."""
    return replace(state, active_tab=DashboardTab(tab))


def select_zone(state: DashboardState, zone: Union[Zone, str]) -> DashboardState:
    """Select a zone on the blueprint.

    Re-selecting the current zone keeps it selected; there is no toggle-off.
    """
    name = zone.name if isinstance(zone, Zone) else zone
    if state.snapshot.zone(name) is None:
        raise ValueError(f"Unknown zone: {name}")
    if state.selected_zone == name:
        return state
    return replace(state, selected_zone=name)


def zone_detail(state: DashboardState) -> Optional[Dict[str, Any]]:
    """Detail panel content for the selected zone, or None."""
    if state.selected_zone is None:
        return None

    snapshot = state.snapshot
    zone = snapshot.zone(state.selected_zone)
    return {
        "name": zone.name,
        "activity_pct": round(zone.activity_level * 100),
        "workers_present": zone.workers_present,
        "equipment_active": sum(1 for u in snapshot.equipment if u.zone == zone.letter),
        "risk_pct": snapshot.risk.get(zone.name),
        "alerts": [a.to_dict() for a in snapshot.alerts if a.zone == zone.name],
    }


def tab_view(state: DashboardState) -> Dict[str, Any]:
    """The JSON-ready slice of the snapshot shown on the active tab."""
    snapshot = state.snapshot
    view: Dict[str, Any] = {"tab": state.active_tab.value}

    if state.active_tab == DashboardTab.BLUEPRINT:
        view["zones"] = [z.to_dict() for z in snapshot.zones]
        view["alerts"] = [a.to_dict() for a in snapshot.alerts]
        view["metrics"] = snapshot.blueprint_metrics()
        view["selected_zone"] = zone_detail(state)
    elif state.active_tab == DashboardTab.ANALYTICS:
        view["kpis"] = snapshot.kpis.to_dict()
        view["time_distribution"] = snapshot.time_distribution.to_dict()
        view["task_metrics"] = snapshot.task_metrics.to_dict()
        view["time_series"] = [p.to_dict() for p in snapshot.time_series]
    elif state.active_tab == DashboardTab.EQUIPMENT:
        view["equipment"] = [u.to_dict() for u in snapshot.equipment]
    elif state.active_tab == DashboardTab.PREDICTIONS:
        view["predictions"] = snapshot.predictions.to_dict()
        view["series"] = [
            {"time": p.time, "historical": p.efficiency, "predicted": p.predicted}
            for p in snapshot.time_series
        ]

    return view


class DashboardSession:
    """Owns the dashboard state for one session."""

    def __init__(self, generator: TelemetryGenerator):
        self._generator = generator
        self._state: Optional[DashboardState] = None

    @property
    def started(self) -> bool:
        return self._state is not None

    @property
    def state(self) -> DashboardState:
        if self._state is None:
            raise RuntimeError("Dashboard session not started")
        return self._state

    @property
    def snapshot(self) -> MetricSnapshot:
        return self.state.snapshot

    def start(self) -> MetricSnapshot:
        """Generate the session snapshot. Later calls return the same one."""
        if self._state is None:
            self._state = DashboardState(snapshot=self._generator.generate())
            logger.info("Dashboard session started")
        return self._state.snapshot

    def regenerate(self) -> MetricSnapshot:
        """Replace the snapshot with a fresh draw; tab and zone are kept."""
        snapshot = self._generator.generate()
        if self._state is None:
            self._state = DashboardState(snapshot=snapshot)
        else:
            selected = self._state.selected_zone
            if selected is not None and snapshot.zone(selected) is None:
                selected = None
            self._state = replace(self._state, snapshot=snapshot, selected_zone=selected)
        logger.info("Dashboard snapshot regenerated")
        return snapshot

    def select_tab(self, tab: Union[DashboardTab, str]) -> DashboardState:
        self._state = select_tab(self.state, tab)
        return self._state

    def select_zone(self, zone: Union[Zone, str]) -> DashboardState:
        self._state = select_zone(self.state, zone)
        return self._state

    def view(self) -> Dict[str, Any]:
        return tab_view(self.state)
