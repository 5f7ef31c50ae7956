"""
Configuration Package

Engine and triage settings.
"""

from .settings import (
    AnalysisConfig,
    Settings,
    TriageConfig,
    TriageWeights,
    load_settings,
)

__all__ = [
    "AnalysisConfig",
    "Settings",
    "TriageConfig",
    "TriageWeights",
    "load_settings",
]
