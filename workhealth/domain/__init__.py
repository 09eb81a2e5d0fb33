"""Pure scoring models and the day analysis service."""

from .analysis import assemble_work_health
from .models import PerformanceStatus, ScheduleMetrics, WorkHealthMetrics
from .work_health_service import DayAnalysis, WorkHealthService

__all__ = [
    "DayAnalysis",
    "PerformanceStatus",
    "ScheduleMetrics",
    "WorkHealthMetrics",
    "WorkHealthService",
    "assemble_work_health",
]
