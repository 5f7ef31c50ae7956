"""
Analysis Settings

Tunable parameters for the analytics engine and triage scoring.

Settings can come from three places, later ones overriding earlier ones:
    1. Dataclass defaults
    2. A YAML file (``load_settings(path)``)
    3. Environment variables (``Settings.from_env()``)

Example YAML:

    analysis:
      damping: 0.85
      phase2_workers: 4
    triage:
      stale_days: 14
      weights:
        priority: 0.4
        impact: 0.2
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

#: Environment variable pointing at a YAML settings file.
CONFIG_ENV_VAR = "ISSUEGRAPH_CONFIG"
WORKERS_ENV_VAR = "ISSUEGRAPH_PHASE2_WORKERS"


@dataclass
class AnalysisConfig:
    """Parameters of the Phase 2 iterative algorithms."""
    damping: float = 0.85
    tolerance: float = 1e-6
    max_iter: int = 100
    phase2_workers: int = 1

    def validate(self) -> None:
        if not 0.0 < self.damping < 1.0:
            raise ValueError("damping must be between 0 and 1 (exclusive)")
        if self.tolerance <= 0:
            raise ValueError("tolerance must be positive")
        if self.max_iter < 1:
            raise ValueError("max_iter must be at least 1")
        if self.phase2_workers < 1:
            raise ValueError("phase2_workers must be at least 1")


@dataclass
class TriageWeights:
    """Relative weight of each triage score component."""
    priority: float = 0.30
    impact: float = 0.25
    depth: float = 0.20
    readiness: float = 0.15
    staleness: float = 0.10

    @property
    def total(self) -> float:
        return self.priority + self.impact + self.depth + self.readiness + self.staleness

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class TriageConfig:
    """Heuristics for triage scoring and quick-win / blocker classification."""
    weights: TriageWeights = field(default_factory=TriageWeights)
    max_priority: int = 4
    stale_days: float = 30.0
    quick_win_max_height: float = 1.0
    quick_win_limit: int = 10
    blocker_min_unblocks: int = 1
    blocker_min_priority_weight: float = 0.0
    top_picks: int = 3
    priority_hint_min_confidence: float = 0.25

    def validate(self) -> None:
        for name, value in self.weights.as_dict().items():
            if value < 0:
                raise ValueError(f"weight '{name}' must be non-negative")
        if self.weights.total <= 0:
            raise ValueError("at least one triage weight must be positive")
        if self.max_priority < 1:
            raise ValueError("max_priority must be at least 1")
        if self.stale_days <= 0:
            raise ValueError("stale_days must be positive")
        if self.quick_win_max_height < 0:
            raise ValueError("quick_win_max_height must be non-negative")
        if self.quick_win_limit < 0:
            raise ValueError("quick_win_limit must be non-negative")
        if self.blocker_min_unblocks < 0:
            raise ValueError("blocker_min_unblocks must be non-negative")
        if self.blocker_min_priority_weight < 0:
            raise ValueError("blocker_min_priority_weight must be non-negative")
        if self.top_picks < 0:
            raise ValueError("top_picks must be non-negative")
        if not 0.0 <= self.priority_hint_min_confidence <= 1.0:
            raise ValueError("priority_hint_min_confidence must be between 0 and 1")


@dataclass
class Settings:
    """Complete engine configuration."""
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    triage: TriageConfig = field(default_factory=TriageConfig)

    def validate(self) -> None:
        self.analysis.validate()
        self.triage.validate()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Settings":
        """Overlay *data* on the defaults. Unknown keys are rejected."""
        data = data or {}
        if not isinstance(data, dict):
            raise ValueError("settings must be a mapping")

        analysis_data = dict(data.get("analysis") or {})
        triage_data = dict(data.get("triage") or {})
        weights_data = triage_data.pop("weights", None) or {}

        unknown = set(data) - {"analysis", "triage"}
        if unknown:
            raise ValueError(f"unknown settings sections: {sorted(unknown)}")

        settings = cls(
            analysis=_build(AnalysisConfig, analysis_data, "analysis"),
            triage=_build(TriageConfig, triage_data, "triage"),
        )
        settings.triage.weights = _build(TriageWeights, weights_data, "triage.weights")
        return settings

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from the file named by ISSUEGRAPH_CONFIG, then env overrides."""
        path = os.getenv(CONFIG_ENV_VAR)
        settings = load_settings(path) if path else cls()
        workers = os.getenv(WORKERS_ENV_VAR)
        if workers:
            try:
                settings.analysis.phase2_workers = int(workers)
            except ValueError as e:
                raise ValueError(f"{WORKERS_ENV_VAR} must be an integer") from e
        settings.validate()
        return settings


def _build(cls, data: Dict[str, Any], section: str):
    names = {f.name for f in fields(cls)} - {"weights"}
    unknown = set(data) - names
    if unknown:
        raise ValueError(f"unknown keys in '{section}': {sorted(unknown)}")
    return cls(**data)


def load_settings(path: Optional[Union[str, Path]]) -> Settings:
    """
    Load settings from a YAML file.

    A missing file yields the defaults. A malformed or invalid file raises
    ValueError.
    """
    if path is None:
        return Settings()
    path = Path(path)
    if not path.exists():
        logger.debug("Settings file %s not found; using defaults", path)
        return Settings()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"parsing settings file {path}: {e}") from e

    try:
        settings = Settings.from_dict(data)
        settings.validate()
    except (TypeError, ValueError) as e:
        raise ValueError(f"invalid settings file {path}: {e}") from e

    logger.info("Loaded settings from %s", path)
    return settings
