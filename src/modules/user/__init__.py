"""
User module: viewer identity verification.
"""

from src.modules.user.viewer_service import ViewerService, ViewerVerifier

__all__ = ["ViewerService", "ViewerVerifier"]
