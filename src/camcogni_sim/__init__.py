"""CAMcogni Simulator - synthetic facility telemetry and dashboard state."""

__version__ = "0.1.0"

from .config import Config
from .dashboard import DashboardSession, DashboardState, DashboardTab
from .generators import MetricSnapshot, TelemetryGenerator
from .historic import HistoricAggregator, HistoricRange
from .randomness import RandomSource, SeededRandomSource
from .reports import AnalysisClient, ReportState, ReportWorkflow, ReportsViewer

__all__ = [
    "AnalysisClient",
    "Config",
    "DashboardSession",
    "DashboardState",
    "DashboardTab",
    "HistoricAggregator",
    "HistoricRange",
    "MetricSnapshot",
    "RandomSource",
    "ReportState",
    "ReportWorkflow",
    "ReportsViewer",
    "SeededRandomSource",
    "TelemetryGenerator",
    "__version__",
]
