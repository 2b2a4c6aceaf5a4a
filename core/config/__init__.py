# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for vidscribe.
"""

from core.config.defaults import (
    MIB,
    SchedulerDefaults,
    RetryDefaults,
    InferenceTier,
    PipelineDefaults,
    ReclaimerDefaults,
    Defaults,
    parse_tiers,
    get_defaults,
    reset_defaults,
)

__all__ = [
    "MIB",
    "SchedulerDefaults",
    "RetryDefaults",
    "InferenceTier",
    "PipelineDefaults",
    "ReclaimerDefaults",
    "Defaults",
    "parse_tiers",
    "get_defaults",
    "reset_defaults",
]
