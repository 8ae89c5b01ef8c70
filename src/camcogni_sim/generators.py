"""Telemetry generators for the facility dashboard.

A dashboard session is backed by one ``MetricSnapshot`` produced here:

- **KPIs**: headline percentages with a signed period-over-period change
- **Zones / Alerts**: the blueprint heat map and its triggered conditions
- **Equipment**: a small roster sampled from a fixed pool
- **Time series**: 24 hourly points for the analytics and prediction charts
- **Predictions**: peak, bottleneck, staffing, risk and weather insights

Every value is drawn uniformly from a fixed interval through an injected
``RandomSource``; generation is synchronous and happens once per session.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from .errors import GenerationError, InvalidSampleSize
from .randomness import RandomSource

logger = logging.getLogger(__name__)


# =============================================================================
# Fixed vocabularies
# =============================================================================

ZONE_NAMES = ["Zone A", "Zone B", "Zone C"]
EQUIPMENT_ZONE_LETTERS = ["A", "B", "C", "D"]

EQUIPMENT_POOL = [
    "Excavator EQ001",
    "Forklift FL-02",
    "Tower Crane TC-03",
    "Concrete Mixer CM-04",
    "Scissor Lift SL-05",
    "Conveyor Belt CB-06",
    "Welding Station WS-07",
    "Compressor AC-08",
    "Generator GN-09",
    "Pallet Jack PJ-10",
]
EQUIPMENT_COUNT = 3

BOTTLENECK_MESSAGES = [
    "Resource shortage predicted",
    "Equipment congestion expected",
    "Material flow delay likely",
]
WEATHER_FORECASTS = ["Light Rain", "Heavy Rain", "Heat Wave", "High Winds"]
MAINTENANCE_IMPACTS = ["Low", "Medium", "High"]


class Trend(Enum):
    """Direction of a period-over-period change."""

    UP = "up"
    DOWN = "down"

    @classmethod
    def from_change(cls, change: float) -> "Trend":
        return cls.UP if change >= 0 else cls.DOWN


class AlertType(Enum):
    """Conditions an alert can report."""

    LOW_ACTIVITY = "Low Activity"
    HIGH_DENSITY = "High Density"


ALERT_MESSAGES = {
    AlertType.LOW_ACTIVITY: "Prolonged idle time detected",
    AlertType.HIGH_DENSITY: "Worker concentration above threshold",
}


# =============================================================================
# Snapshot data classes
# =============================================================================


@dataclass(frozen=True)
class KpiMetric:
    """A headline percentage and its signed change."""

    value: int
    change: float

    @property
    def trend(self) -> Trend:
        return Trend.from_change(self.change)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value,
            "change": self.change,
            "trend": self.trend.value,
        }


@dataclass(frozen=True)
class KpiSet:
    """The four KPI cards of the analytics tab."""

    overall_efficiency: KpiMetric
    labor_utilization: KpiMetric
    task_completion: KpiMetric
    quality_score: KpiMetric

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_efficiency": self.overall_efficiency.to_dict(),
            "labor_utilization": self.labor_utilization.to_dict(),
            "task_completion": self.task_completion.to_dict(),
            "quality_score": self.quality_score.to_dict(),
        }


def format_minutes(minutes: int) -> str:
    """Render a duration like ``7h 45m`` (or ``45m`` under an hour)."""
    hours, mins = divmod(minutes, 60)
    if hours:
        return f"{hours}h {mins}m"
    return f"{mins}m"


@dataclass(frozen=True)
class TimeDistribution:
    """Shift time split, in minutes."""

    active_time: int
    break_time: int
    downtime: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "active_time_min": self.active_time,
            "break_time_min": self.break_time,
            "downtime_min": self.downtime,
            "active_time": format_minutes(self.active_time),
            "break_time": format_minutes(self.break_time),
            "downtime": format_minutes(self.downtime),
        }


@dataclass(frozen=True)
class TaskMetrics:
    """Task throughput and quality figures."""

    tasks_completed: int
    tasks_total: int
    avg_completion_time: int  # minutes
    quality_compliance: int  # %
    rework_rate: float  # %

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tasks_completed": self.tasks_completed,
            "tasks_total": self.tasks_total,
            "avg_completion_time_min": self.avg_completion_time,
            "quality_compliance_pct": self.quality_compliance,
            "rework_rate_pct": self.rework_rate,
        }


@dataclass(frozen=True)
class Zone:
    """A monitored physical area on the blueprint."""

    id: int
    name: str
    activity_level: float  # 0.0 - 1.0
    workers_present: int = 0

    @property
    def letter(self) -> str:
        return self.name.split()[-1]

    def heat_map_color(self) -> str:
        """Green at full activity, red when idle."""
        hue = (1 - self.activity_level) * 120
        return f"hsl({hue:g}, 70%, 50%)"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "activity": self.activity_level,
            "activity_pct": round(self.activity_level * 100),
            "workers_present": self.workers_present,
            "color": self.heat_map_color(),
        }


@dataclass(frozen=True)
class Alert:
    """A triggered condition tied to a zone."""

    id: int
    zone: str
    type: AlertType
    message: str

    @property
    def title(self) -> str:
        return f"{self.zone} - {self.type.value}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "zone": self.zone,
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
        }


@dataclass(frozen=True)
class EquipmentUnit:
    """A named piece of equipment on the floor."""

    name: str
    serial_number: str
    utilization: float  # %
    zone: str  # letter A-D
    status: str = "Active"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "serial_number": self.serial_number,
            "status": self.status,
            "utilization_pct": self.utilization,
            "location": f"Zone {self.zone}",
        }


@dataclass(frozen=True)
class TimeSeriesPoint:
    """One hour of metrics."""

    hour: str  # "00" - "23"
    efficiency: float
    workers: int
    equipment: int
    predicted: float
    work_completion: float
    labor_utilization: float

    @property
    def time(self) -> str:
        return f"{self.hour}:00"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": self.time,
            "efficiency": self.efficiency,
            "workers": self.workers,
            "equipment": self.equipment,
            "predicted": self.predicted,
            "workCompletion": self.work_completion,
            "laborUtilization": self.labor_utilization,
        }


@dataclass(frozen=True)
class PredictionSet:
    """Forward-looking insights for the predictions tab."""

    peak_efficiency: int
    peak_hour: int
    bottleneck_zone: str
    bottleneck_message: str
    staffing_workers: int
    staffing_zone: str
    risk_by_zone: Mapping[str, int]
    recommended_shifts: int
    equipment_relocation: int
    expected_gain: int
    weather: str
    weather_probability: int
    weather_impact: int
    maintenance_due_hours: int
    maintenance_equipment: str
    maintenance_impact: str

    @property
    def peak_time(self) -> str:
        return f"{self.peak_hour:02d}:00"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "peak_efficiency": {
                "value_pct": self.peak_efficiency,
                "expected_at": self.peak_time,
            },
            "bottleneck": {
                "zone": self.bottleneck_zone,
                "message": self.bottleneck_message,
            },
            "staffing": {
                "additional_workers": self.staffing_workers,
                "zone": self.staffing_zone,
            },
            "risk_by_zone": dict(self.risk_by_zone),
            "maintenance": {
                "due_in_hours": self.maintenance_due_hours,
                "equipment": self.maintenance_equipment,
                "impact": self.maintenance_impact,
            },
            "optimization": {
                "recommended_shifts": self.recommended_shifts,
                "equipment_relocation": self.equipment_relocation,
                "expected_gain_pct": self.expected_gain,
            },
            "weather": {
                "forecast": self.weather,
                "probability_pct": self.weather_probability,
                "impact_pct": self.weather_impact,
            },
        }


@dataclass(frozen=True)
class MetricSnapshot:
    """Everything one dashboard session displays."""

    kpis: KpiSet
    time_distribution: TimeDistribution
    task_metrics: TaskMetrics
    zones: Tuple[Zone, ...]
    alerts: Tuple[Alert, ...]
    equipment: Tuple[EquipmentUnit, ...]
    time_series: Tuple[TimeSeriesPoint, ...]
    predictions: PredictionSet
    generated_at: datetime = field(default_factory=datetime.now)

    @property
    def risk(self) -> Mapping[str, int]:
        return self.predictions.risk_by_zone

    @property
    def active_workers(self) -> int:
        return self.time_series[-1].workers if self.time_series else 0

    @property
    def equipment_utilization(self) -> int:
        if not self.equipment:
            return 0
        return round(sum(u.utilization for u in self.equipment) / len(self.equipment))

    @property
    def alert_count(self) -> int:
        return len(self.alerts)

    def zone(self, name: str) -> Optional[Zone]:
        for zone in self.zones:
            if zone.name == name:
                return zone
        return None

    def blueprint_metrics(self) -> Dict[str, Any]:
        return {
            "active_workers": self.active_workers,
            "equipment_utilization_pct": self.equipment_utilization,
            "alert_count": self.alert_count,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kpis": self.kpis.to_dict(),
            "time_distribution": self.time_distribution.to_dict(),
            "task_metrics": self.task_metrics.to_dict(),
            "zones": [z.to_dict() for z in self.zones],
            "alerts": [a.to_dict() for a in self.alerts],
            "equipment": [e.to_dict() for e in self.equipment],
            "time_series": [p.to_dict() for p in self.time_series],
            "predictions": self.predictions.to_dict(),
            "metrics": self.blueprint_metrics(),
            "_generated_at": self.generated_at.isoformat() + "Z",
        }


# =============================================================================
# Generator
# =============================================================================


class TelemetryGenerator:
    """Builds a ``MetricSnapshot`` from bounded-random draws."""

    def __init__(
        self,
        source: RandomSource,
        equipment_pool: Sequence[str] = tuple(EQUIPMENT_POOL),
        equipment_count: int = EQUIPMENT_COUNT,
    ):
        self.source = source
        self.equipment_pool = list(equipment_pool)
        self.equipment_count = equipment_count

    def generate(self) -> MetricSnapshot:
        """Generate a complete snapshot.

        Raises:
            GenerationError: the equipment pool cannot supply
                ``equipment_count`` distinct names.
        """
        # Check before drawing anything so a failed start leaves no partial state
        if len(self.equipment_pool) < self.equipment_count:
            raise GenerationError(
                f"Equipment pool has {len(self.equipment_pool)} names, "
                f"{self.equipment_count} required"
            )

        zones = self.generate_zones()
        equipment = self.generate_equipment()
        snapshot = MetricSnapshot(
            kpis=self.generate_kpis(),
            time_distribution=self.generate_time_distribution(),
            task_metrics=self.generate_task_metrics(),
            zones=zones,
            alerts=self.generate_alerts(),
            equipment=equipment,
            time_series=self.generate_time_series(),
            predictions=self.generate_predictions(equipment),
        )
        logger.info(
            f"Generated snapshot: {len(snapshot.zones)} zones, "
            f"{snapshot.alert_count} alerts, {len(snapshot.equipment)} equipment units"
        )
        return snapshot

    def _kpi(self, min_value: int, max_value: int) -> KpiMetric:
        return KpiMetric(
            value=self.source.uniform_int(min_value, max_value),
            change=self.source.uniform_float(-3, 3, 1),
        )

    def generate_kpis(self) -> KpiSet:
        return KpiSet(
            overall_efficiency=self._kpi(80, 90),
            labor_utilization=self._kpi(85, 95),
            task_completion=self._kpi(75, 90),
            quality_score=self._kpi(90, 98),
        )

    def generate_time_distribution(self) -> TimeDistribution:
        return TimeDistribution(
            active_time=self.source.uniform_int(400, 480),
            break_time=self.source.uniform_int(30, 60),
            downtime=self.source.uniform_int(20, 50),
        )

    def generate_task_metrics(self) -> TaskMetrics:
        completed = self.source.uniform_int(40, 60)
        return TaskMetrics(
            tasks_completed=completed,
            # Lower bound is the completed count, so total >= completed always
            tasks_total=self.source.uniform_int(completed, 65),
            avg_completion_time=self.source.uniform_int(30, 60),
            quality_compliance=self.source.uniform_int(85, 99),
            rework_rate=self.source.uniform_float(2, 6, 1),
        )

    def generate_zones(self) -> Tuple[Zone, ...]:
        return tuple(
            Zone(
                id=i + 1,
                name=name,
                activity_level=self.source.uniform_float(0.3, 0.9, 2),
                workers_present=self.source.uniform_int(4, 12),
            )
            for i, name in enumerate(ZONE_NAMES)
        )

    def generate_alerts(self) -> Tuple[Alert, ...]:
        count = self.source.uniform_int(1, 2)
        alerts = []
        for i in range(count):
            alert_type = AlertType.LOW_ACTIVITY if i % 2 == 0 else AlertType.HIGH_DENSITY
            alerts.append(
                Alert(
                    id=i + 1,
                    zone=self.source.choice(ZONE_NAMES),
                    type=alert_type,
                    message=ALERT_MESSAGES[alert_type],
                )
            )
        return tuple(alerts)

    def generate_equipment(self) -> Tuple[EquipmentUnit, ...]:
        try:
            names = self.source.sample(self.equipment_pool, self.equipment_count)
        except InvalidSampleSize as e:
            raise GenerationError(str(e)) from e

        fake = self.source.faker()
        return tuple(
            EquipmentUnit(
                name=name,
                serial_number=fake.bothify("SN-####-??").upper(),
                utilization=self.source.uniform_float(75, 95, 1),
                zone=self.source.choice(EQUIPMENT_ZONE_LETTERS),
            )
            for name in names
        )

    def generate_time_series(self) -> Tuple[TimeSeriesPoint, ...]:
        return tuple(
            TimeSeriesPoint(
                hour=f"{hour:02d}",
                efficiency=self.source.uniform_float(75, 95, 1),
                workers=self.source.uniform_int(15, 30),
                equipment=self.source.uniform_int(8, 16),
                predicted=self.source.uniform_float(80, 95, 1),
                work_completion=self.source.uniform_float(85, 100, 1),
                labor_utilization=self.source.uniform_float(70, 95, 1),
            )
            for hour in range(24)
        )

    def generate_predictions(self, equipment: Sequence[EquipmentUnit]) -> PredictionSet:
        source = self.source
        equipment_names = [u.name for u in equipment] or self.equipment_pool
        return PredictionSet(
            peak_efficiency=source.uniform_int(85, 99),
            peak_hour=source.uniform_int(10, 17),
            bottleneck_zone=source.choice(ZONE_NAMES),
            bottleneck_message=source.choice(BOTTLENECK_MESSAGES),
            staffing_workers=source.uniform_int(2, 5),
            staffing_zone=source.choice(ZONE_NAMES),
            risk_by_zone=MappingProxyType(
                {name: source.uniform_int(30, 45) for name in ZONE_NAMES}
            ),
            recommended_shifts=source.uniform_int(1, 3),
            equipment_relocation=source.uniform_int(1, 5),
            expected_gain=source.uniform_int(10, 20),
            weather=source.choice(WEATHER_FORECASTS),
            weather_probability=source.uniform_int(40, 90),
            weather_impact=-source.uniform_int(5, 15),
            maintenance_due_hours=source.uniform_int(24, 72),
            maintenance_equipment=source.choice(equipment_names),
            maintenance_impact=source.choice(MAINTENANCE_IMPACTS),
        )
