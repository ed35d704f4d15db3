"""Models package for the journey runner."""

from .journey_models import (
    WaitStrategy,
    Viewport,
    AxeIgnore,
    AxeConfig,
    PageConfig,
    PageRule,
    ExitPath,
    BrowserConfig,
    JourneyConfig,
)
from .report_models import (
    LifecycleState,
    OperationStatus,
    FieldResult,
    CollectResult,
    AccessibilityNode,
    AccessibilityFinding,
    ReportEntry,
    RunReport,
)

__all__ = [
    # Journey configuration models
    "WaitStrategy",
    "Viewport",
    "AxeIgnore",
    "AxeConfig",
    "PageConfig",
    "PageRule",
    "ExitPath",
    "BrowserConfig",
    "JourneyConfig",
    # Report models
    "LifecycleState",
    "OperationStatus",
    "FieldResult",
    "CollectResult",
    "AccessibilityNode",
    "AccessibilityFinding",
    "ReportEntry",
    "RunReport",
]
