"""Monitoring module for container-packing.

Provides Telegram notifications and metrics tracking for packing experiments.
"""

from .metrics import (
    ExperimentMetrics,
    RunMetrics,
    export_to_csv,
    export_to_json,
    print_summary,
)
from .telegram_notifier import (
    format_error,
    format_experiment_start,
    format_final_summary,
    format_problem_milestone,
    send_telegram,
)

__all__ = [
    # Metrics
    "ExperimentMetrics",
    "RunMetrics",
    "export_to_csv",
    "export_to_json",
    "print_summary",
    # Telegram
    "send_telegram",
    "format_experiment_start",
    "format_problem_milestone",
    "format_error",
    "format_final_summary",
]
