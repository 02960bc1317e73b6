"""Enumerations used by the HTTP client.

``HttpMethod`` names the verbs exposed by the facade; ``RefreshPhase`` is the
two-state machine driven by the refresh coordinator.
"""
from enum import Enum, auto


class HttpMethod(str, Enum):
    """HTTP verbs supported by the client facade."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


class RefreshPhase(Enum):
    """States of the refresh coordinator."""
    IDLE = auto()
    REFRESHING = auto()
