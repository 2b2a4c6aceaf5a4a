# ============================================================================
# INFRASTRUCTURE MODULE
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Infrastructure - External service clients
# PURPOSE: Drive retrieval, Gemini inference, repository base patterns
# CREATED: 19 OCT 2026
# ============================================================================
"""
Infrastructure Module

Clients for the external collaborators:
- drive: Google Drive artifact source (httpx + google-auth)
- inference: Gemini inference backend (google-generativeai)
- base_repository: error context shared by repositories
"""

from .base_repository import BaseRepository
from .drive import DriveArtifactSource
from .inference import GeminiInferenceBackend

__all__ = [
    "BaseRepository",
    "DriveArtifactSource",
    "GeminiInferenceBackend",
]
