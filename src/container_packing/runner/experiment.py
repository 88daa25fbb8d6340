"""Experiment runner: pack a set of problems with every configured algorithm."""

from __future__ import annotations

import argparse
import asyncio
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence

from container_packing.config import RunnerSettings, configure_logging, load_settings
from container_packing.core.models import Container, Item
from container_packing.core.validator import PlacementError
from container_packing.monitoring.metrics import (
    ExperimentMetrics,
    RunMetrics,
    export_to_csv,
    export_to_json,
    print_summary,
)
from container_packing.monitoring.telegram_notifier import (
    format_error,
    format_experiment_start,
    format_final_summary,
    format_problem_milestone,
    send_telegram,
)
from container_packing.runner.dataset import generate_items, get_ordering_strategy
from container_packing.runner.problems import ContainerSpec, ItemSpec, Problem, load_problems
from container_packing.runner.service import ContainerPackingResult, pack

logger = logging.getLogger(__name__)


class ExperimentRunner:
    """
    Experiment orchestrator.

    Runs every problem under each ordering strategy through the packing
    service, collects metrics, saves results and sends progress updates.
    """

    def __init__(self, settings: Optional[RunnerSettings] = None):
        self.settings = settings or RunnerSettings()
        self.results_dir = Path(self.settings.results_dir)
        self.results_dir.mkdir(parents=True, exist_ok=True)

    async def run_experiment(
        self,
        problems: Sequence[Problem],
        orderings: Sequence[str] = ("as_given",),
        seed: Optional[int] = None,
    ) -> ExperimentMetrics:
        """
        Pack every problem under every ordering with every algorithm.

        Args:
            problems:  Problems to run.
            orderings: Ordering strategy names applied to each item list.
            seed:      Seed for the ``random`` ordering.

        Returns:
            ExperimentMetrics with aggregated results.

        Flow:
            1. Send start notification
            2. For each problem and ordering:
                - reorder the items and pack them off the event loop,
                  cancelling the search when the time limit runs out
                - record one RunMetrics per algorithm
                - save interim results
            3. Mark complete, save final results, send final summary
        """
        order_fns = [(name, get_ordering_strategy(name)) for name in orderings]
        experiment_id = f"exp_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}"
        metrics = ExperimentMetrics(
            experiment_id=experiment_id,
            algorithms=list(self.settings.algorithms),
            total_problems=len(problems) * len(order_fns),
        )

        await self._notify(format_experiment_start(
            total_problems=metrics.total_problems,
            algorithms=metrics.algorithms,
            orderings=list(orderings),
        ))

        completed = 0
        for problem in problems:
            container, items = problem.build()
            for ordering, order_fn in order_fns:
                ordered = order_fn(items, seed)
                try:
                    outcome = await self._pack(container, ordered)
                except PlacementError as exc:
                    logger.error("problem %s (%s): %s", problem.name, ordering, exc)
                    metrics.record_error()
                    await self._notify(format_error(
                        type(exc).__name__, str(exc),
                        {"problem": problem.name, "ordering": ordering},
                    ))
                else:
                    for run in outcome.runs:
                        metrics.add_run(RunMetrics.from_result(
                            run.result, problem=problem.name,
                            ordering=ordering, elapsed_ms=run.elapsed_ms,
                        ))
                        if run.result.diagnostics.get("cancelled"):
                            logger.warning("problem %s (%s): %s stopped at the time limit",
                                           problem.name, ordering, run.result.algorithm_name)

                completed += 1
                self._save_results(metrics, suffix=f"_interim_{completed}")

            await self._notify(format_problem_milestone(
                problems_completed=completed,
                total_problems=metrics.total_problems,
                avg_utilization=metrics.avg_utilization_pct,
            ))

        metrics.mark_complete()
        self._save_results(metrics, suffix="_final")

        await self._notify(format_final_summary(
            total_runs=metrics.total_runs,
            complete_packs=metrics.complete_packs,
            avg_utilization=metrics.avg_utilization_pct,
            runtime_seconds=metrics.runtime_seconds,
            errors=metrics.errors_count,
        ))

        print(print_summary(metrics))
        return metrics

    async def _pack(self, container: Container, items: List[Item]) -> ContainerPackingResult:
        """Pack off the event loop, cancelling the search once the time limit runs out."""
        cancel_event = threading.Event()
        timer = None
        if self.settings.time_limit_seconds is not None:
            timer = threading.Timer(self.settings.time_limit_seconds, cancel_event.set)
            timer.daemon = True
            timer.start()
        try:
            return await asyncio.to_thread(
                pack, container, items, self.settings.algorithms, self.settings.packer, cancel_event,
            )
        finally:
            if timer is not None:
                timer.cancel()

    async def _notify(self, message: str) -> None:
        if self.settings.send_telegram_updates:
            await send_telegram(message)

    def _save_results(self, metrics: ExperimentMetrics, suffix: str = "") -> None:
        """
        Save metrics to JSON and CSV files.

        Interim saves write the summary only; the final save includes runs.
        """
        base_filename = f"{metrics.experiment_id}{suffix}"

        json_path = self.results_dir / f"{base_filename}.json"
        export_to_json(metrics, json_path, include_runs=suffix.endswith("_final"))

        csv_path = self.results_dir / f"{base_filename}_runs.csv"
        export_to_csv(metrics, csv_path)

        logger.debug("saved results to %s and %s", json_path, csv_path)


def generated_problems(
    count: int,
    items_per_problem: int,
    container: Container,
    seed: Optional[int] = None,
) -> List[Problem]:
    """Build *count* random problems sharing one container."""
    problems = []
    for index in range(count):
        problem_seed = None if seed is None else seed + index
        items = generate_items(count=items_per_problem, seed=problem_seed)
        problems.append(Problem(
            name=f"generated_{index:03d}",
            container=ContainerSpec(**container.to_dict()),
            items=[ItemSpec(**item.to_dict()) for item in items],
        ))
    return problems


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run container packing experiments")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--problems", type=Path, help="YAML problem file")
    source.add_argument("--generate", type=int, metavar="N",
                        help="Generate N random problems")
    parser.add_argument("--items", type=int, default=8,
                        help="Item types per generated problem (default: 8)")
    parser.add_argument("--container", type=float, nargs=3, default=[10.0, 10.0, 10.0],
                        metavar=("L", "W", "H"),
                        help="Container for generated problems (default: 10 10 10)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--config", type=Path, help="YAML runner settings")
    parser.add_argument("--algorithms", nargs="+", help="Algorithm names to run")
    parser.add_argument("--orderings", nargs="+", default=["as_given"],
                        help="Item ordering strategies (default: as_given)")
    limit = parser.add_mutually_exclusive_group()
    limit.add_argument("--time-limit", type=float, metavar="SECONDS",
                       help="Cancel the search for one problem after this many seconds")
    limit.add_argument("--no-time-limit", action="store_true",
                       help="Let every search run to completion")
    parser.add_argument("--results-dir", help="Directory to save results")
    parser.add_argument("--telegram", action="store_true",
                        help="Send Telegram progress updates")
    return parser


def settings_from_args(args: argparse.Namespace) -> RunnerSettings:
    """Settings file (if any) overridden by explicit command-line options."""
    settings = load_settings(args.config) if args.config else RunnerSettings()
    overrides = {}
    if args.algorithms:
        overrides["algorithms"] = args.algorithms
    if args.time_limit is not None:
        overrides["time_limit_seconds"] = args.time_limit
    if args.no_time_limit:
        overrides["time_limit_seconds"] = None
    if args.results_dir:
        overrides["results_dir"] = args.results_dir
    if args.telegram:
        overrides["send_telegram_updates"] = True
    if overrides:
        settings = RunnerSettings.model_validate({**settings.model_dump(), **overrides})
    return settings


async def main(argv: Optional[Sequence[str]] = None) -> ExperimentMetrics:
    args = build_parser().parse_args(argv)
    settings = settings_from_args(args)
    configure_logging(settings.log_level)

    if args.problems:
        problems = load_problems(args.problems)
    else:
        container = Container(*args.container)
        problems = generated_problems(args.generate, args.items, container, seed=args.seed)

    runner = ExperimentRunner(settings)
    return await runner.run_experiment(problems, orderings=args.orderings, seed=args.seed)


def cli(argv: Optional[Sequence[str]] = None) -> int:
    """Console entry point."""
    metrics = asyncio.run(main(argv))
    return 1 if metrics.errors_count else 0


if __name__ == "__main__":
    raise SystemExit(cli())
