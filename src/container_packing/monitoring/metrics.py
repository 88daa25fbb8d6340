"""Metrics tracking and export for packing experiments.

Provides dataclasses for tracking experiment metrics and utilities for
exporting results to JSON and CSV formats.
"""

from __future__ import annotations

import csv
import json
import statistics
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from container_packing.core.models import PlacementResult


CSV_FIELDS = [
    "problem", "ordering", "algorithm", "container_id", "units_total",
    "units_packed", "complete", "utilization_pct", "item_volume_packed_pct",
    "volume_used", "volume_total", "elapsed_ms", "cancelled", "finished_at",
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RunMetrics:
    """Metrics for one algorithm run on one problem.

    Attributes:
        problem: Problem name.
        ordering: Ordering strategy applied to the items.
        algorithm: Algorithm name.
        container_id: Container identifier.
        units_total: Units expanded from the item list.
        units_packed: Units placed in the container.
        complete: Whether every unit was packed.
        utilization_pct: Packed volume as a percentage of container volume.
        item_volume_packed_pct: Packed volume as a percentage of item volume.
        volume_used: Total packed volume.
        volume_total: Container volume.
        elapsed_ms: Wall-clock time of the run.
        cancelled: Whether the search was stopped before it finished.
        finished_at: Timestamp when the run finished.
    """

    problem: str
    ordering: str
    algorithm: str
    container_id: int
    units_total: int
    units_packed: int
    complete: bool
    utilization_pct: float
    item_volume_packed_pct: float
    volume_used: float
    volume_total: float
    elapsed_ms: float = 0.0
    cancelled: bool = False
    finished_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_result(
        cls,
        result: PlacementResult,
        problem: str,
        ordering: str = "as_given",
        elapsed_ms: float = 0.0,
    ) -> "RunMetrics":
        """Build metrics from a ``PlacementResult``."""
        return cls(
            problem=problem,
            ordering=ordering,
            algorithm=result.algorithm_name,
            container_id=result.container.id,
            units_total=result.unit_count,
            units_packed=len(result.packed_units),
            complete=result.is_complete_pack,
            utilization_pct=result.percent_container_used,
            item_volume_packed_pct=result.percent_item_volume_packed,
            volume_used=result.packed_volume,
            volume_total=result.container.volume,
            elapsed_ms=elapsed_ms,
            cancelled=bool(result.diagnostics.get("cancelled", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary with ISO timestamp.

        Example:
            >>> rm = RunMetrics("crate", "as_given", "layer_heuristic", 1, 4, 3,
            ...                 False, 75.0, 75.0, 750.0, 1000.0)
            >>> d = rm.to_dict()
            >>> d["units_packed"]
            3
            >>> d["utilization_pct"]
            75.0
        """
        d = asdict(self)
        d["finished_at"] = self.finished_at.isoformat()
        return d


@dataclass
class ExperimentMetrics:
    """Aggregate metrics for an entire experiment run.

    Attributes:
        experiment_id: Unique identifier for the experiment.
        algorithms: Algorithm names used.
        total_problems: Number of problem × ordering combinations planned.
        total_runs: Number of recorded runs.
        total_units_packed: Units packed across all runs.
        complete_packs: Runs that packed every unit.
        cancelled_runs: Runs stopped before their search finished.
        avg_utilization_pct: Average utilization across all runs.
        median_utilization_pct: Median utilization across all runs.
        min_utilization_pct: Minimum utilization across all runs.
        max_utilization_pct: Maximum utilization across all runs.
        runtime_seconds: Total runtime in seconds.
        errors_count: Number of errors encountered.
        started_at: Experiment start timestamp.
        completed_at: Experiment completion timestamp (None if running).
        run_metrics: List of per-run metrics.
    """

    experiment_id: str
    algorithms: list[str] = field(default_factory=list)
    total_problems: int = 0
    total_runs: int = 0
    total_units_packed: int = 0
    complete_packs: int = 0
    cancelled_runs: int = 0
    avg_utilization_pct: float = 0.0
    median_utilization_pct: float = 0.0
    min_utilization_pct: float = 0.0
    max_utilization_pct: float = 0.0
    runtime_seconds: float = 0.0
    errors_count: int = 0
    started_at: datetime = field(default_factory=_utcnow)
    completed_at: datetime | None = None
    run_metrics: list[RunMetrics] = field(default_factory=list)

    def add_run(self, run: RunMetrics) -> None:
        """Add one run's metrics to the experiment.

        Example:
            >>> em = ExperimentMetrics("exp_001", ["layer_heuristic"], total_problems=2)
            >>> em.add_run(RunMetrics("crate", "as_given", "layer_heuristic", 1, 4, 4,
            ...                       True, 80.0, 100.0, 800.0, 1000.0))
            >>> em.total_runs, em.complete_packs
            (1, 1)
        """
        self.run_metrics.append(run)
        self.total_runs += 1
        self.total_units_packed += run.units_packed
        if run.complete:
            self.complete_packs += 1
        if run.cancelled:
            self.cancelled_runs += 1
        self._recalculate_stats()

    def record_error(self) -> None:
        """Increment error counter."""
        self.errors_count += 1

    def mark_complete(self) -> None:
        """Mark experiment as complete and calculate final runtime."""
        self.completed_at = _utcnow()
        self.runtime_seconds = (self.completed_at - self.started_at).total_seconds()

    def _recalculate_stats(self) -> None:
        """Recalculate aggregate statistics from run metrics."""
        if not self.run_metrics:
            return

        utilizations = [r.utilization_pct for r in self.run_metrics]
        self.avg_utilization_pct = statistics.fmean(utilizations)
        self.median_utilization_pct = statistics.median(utilizations)
        self.min_utilization_pct = min(utilizations)
        self.max_utilization_pct = max(utilizations)

    def by_algorithm(self) -> dict[str, float]:
        """Average utilization per algorithm."""
        grouped: dict[str, list[float]] = {}
        for run in self.run_metrics:
            grouped.setdefault(run.algorithm, []).append(run.utilization_pct)
        return {name: statistics.fmean(values) for name, values in grouped.items()}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary with ISO timestamps."""
        d = asdict(self)
        d["started_at"] = self.started_at.isoformat()
        d["completed_at"] = self.completed_at.isoformat() if self.completed_at else None
        d["run_metrics"] = [r.to_dict() for r in self.run_metrics]
        return d

    def to_summary_dict(self) -> dict[str, Any]:
        """Convert to summary dictionary without per-run details.

        Example:
            >>> em = ExperimentMetrics("exp_001")
            >>> d = em.to_summary_dict()
            >>> "run_metrics" in d
            False
            >>> "total_runs" in d
            True
        """
        d = self.to_dict()
        del d["run_metrics"]
        return d


def export_to_json(metrics: ExperimentMetrics, output_path: Path | str, include_runs: bool = True) -> None:
    """Export experiment metrics to JSON file.

    Args:
        metrics: ExperimentMetrics instance to export.
        output_path: Path to output JSON file.
        include_runs: If True, include per-run metrics. If False, summary only.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    data = metrics.to_dict() if include_runs else metrics.to_summary_dict()

    with output_path.open("w") as f:
        json.dump(data, f, indent=2)


def export_to_csv(metrics: ExperimentMetrics, output_path: Path | str) -> None:
    """Export per-run metrics to CSV file (header only when there are none)."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with output_path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for run in metrics.run_metrics:
            writer.writerow(run.to_dict())


def print_summary(metrics: ExperimentMetrics) -> str:
    """Generate human-readable summary of experiment metrics.

    Returns:
        Formatted multi-line summary string.

    Example:
        >>> em = ExperimentMetrics("exp_001", ["layer_heuristic"])
        >>> summary = print_summary(em)
        >>> "Experiment: exp_001" in summary
        True
    """
    lines = [
        "=" * 60,
        f"Experiment: {metrics.experiment_id}",
        f"Algorithms: {', '.join(metrics.algorithms)}",
        "=" * 60,
        f"Problems Processed: {metrics.total_problems}",
        f"Runs: {metrics.total_runs}",
        f"Units Packed: {metrics.total_units_packed}",
        f"Complete Packs: {metrics.complete_packs}",
        f"Cancelled Runs: {metrics.cancelled_runs}",
        "",
        "Utilization Statistics:",
        f"  Average: {metrics.avg_utilization_pct:.2f}%",
        f"  Median:  {metrics.median_utilization_pct:.2f}%",
        f"  Min:     {metrics.min_utilization_pct:.2f}%",
        f"  Max:     {metrics.max_utilization_pct:.2f}%",
    ]
    per_algorithm = metrics.by_algorithm()
    if per_algorithm:
        lines.append("")
        lines.append("Per Algorithm:")
        for name, avg in per_algorithm.items():
            lines.append(f"  {name}: {avg:.2f}%")
    lines += [
        "",
        f"Runtime: {metrics.runtime_seconds:.1f} seconds ({metrics.runtime_seconds / 60:.1f} minutes)",
        f"Errors: {metrics.errors_count}",
        "",
        f"Started:   {metrics.started_at.isoformat()}",
        f"Completed: {metrics.completed_at.isoformat() if metrics.completed_at else 'In Progress'}",
        "=" * 60,
    ]
    return "\n".join(lines)
