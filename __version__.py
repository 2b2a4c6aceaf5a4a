# ============================================================================
# VERSION - VIDSCRIBE
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# ============================================================================
"""
Version information for vidscribe.

This is the single source of truth for the application version.
Updated manually for each release.
"""
# Version format: major.minor.patch.build
# Criteria for 0.3 - retry + reclamation engine complete
__version__ = "0.3.0.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Build metadata
BUILD_DATE = "2026-10-19"

EPOCH = 1
CODENAME = "Video Description Service"
