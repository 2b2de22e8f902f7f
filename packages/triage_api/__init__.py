"""Case Triage Engine - API Package.

FastAPI host exposing evaluation, the escalation lifecycle and statistics.
"""

from .app import AppState, create_app, get_app_state

__version__ = "0.1.0"

__all__ = ["AppState", "create_app", "get_app_state"]
