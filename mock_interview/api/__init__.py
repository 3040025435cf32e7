"""
API routers package.
"""
from mock_interview.api import credentials, health, history, recordings, sessions, topics, ws_sessions

__all__ = ["credentials", "health", "history", "recordings", "sessions", "topics", "ws_sessions"]
