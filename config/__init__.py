"""
Configuration module for the PropCompare reconciliation engine.
"""

from .comparison_config import (
    ComparisonConfig,
    SourceSettings,
    FieldSpec,
    MatchingSettings,
    ThresholdSettings,
    DisplaySettings,
    get_config,
    reload_config,
    set_config,
    build_default_config,
)

__all__ = [
    'ComparisonConfig',
    'SourceSettings',
    'FieldSpec',
    'MatchingSettings',
    'ThresholdSettings',
    'DisplaySettings',
    'get_config',
    'reload_config',
    'set_config',
    'build_default_config',
]
