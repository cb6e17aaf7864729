# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - SPARK SUBMISSION GATEWAY
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 12 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized defaults for the gateway and CLI.
"""

from core.config.defaults import (
    TeardownDefaults,
    SubmissionDefaults,
    ClientDefaults,
    Defaults,
    get_defaults,
)

__all__ = [
    "TeardownDefaults",
    "SubmissionDefaults",
    "ClientDefaults",
    "Defaults",
    "get_defaults",
]
