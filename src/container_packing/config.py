"""
Settings for the packing engine and the experiment runner.

Classes:
    PackerSettings — per-algorithm knobs (result validation, placement logging)
    RunnerSettings — experiment runner options, embeds PackerSettings

Settings are plain immutable values passed explicitly to whoever needs them;
nothing here is read from module-level mutable state.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field


DEFAULT_ALGORITHMS: List[str] = ["layer_heuristic", "orientation_search"]

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class PackerSettings(BaseModel):
    """
    Engine-level settings shared by every algorithm.

    Attributes:
        validate_results:     Re-check each result's invariants and raise
                              ``PlacementError`` on a violation.
        validation_tolerance: Absolute float slack used by the validator.
        log_placements:       Emit one DEBUG record per committed unit.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    validate_results: bool = True
    validation_tolerance: float = Field(default=1e-9, ge=0)
    log_placements: bool = False


class RunnerSettings(BaseModel):
    """
    Experiment runner options.

    Attributes:
        time_limit_seconds: Wall-clock budget for packing one problem under
                            one ordering (all algorithms together). When it
                            runs out the search is cancelled and the run
                            keeps what it has. ``None`` means no limit.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    algorithms: List[str] = Field(default_factory=lambda: list(DEFAULT_ALGORITHMS), min_length=1)
    results_dir: str = "results"
    send_telegram_updates: bool = False
    log_level: str = "INFO"
    time_limit_seconds: Optional[float] = Field(default=30.0, gt=0)
    packer: PackerSettings = Field(default_factory=PackerSettings)


def load_settings(path: Path | str) -> RunnerSettings:
    """
    Load runner settings from a YAML file.

    An empty file yields the defaults. Unknown keys are rejected.

    Raises:
        FileNotFoundError:        the file does not exist.
        pydantic.ValidationError: the content does not match the schema.
    """
    path = Path(path)
    with path.open() as f:
        data = yaml.safe_load(f) or {}
    return RunnerSettings.model_validate(data)


def configure_logging(level: str | int = "INFO") -> None:
    """Install a root handler for CLI use. Library code never calls this."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(level=level, format=LOG_FORMAT)
