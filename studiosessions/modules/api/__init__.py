"""
API Module - Black Box Interface

Purpose: Shared request/response models and the sessions HTTP router
Interface: models in .models, create_sessions_router() in .routes
"""

from .models import (
    BandSessionStats,
    ConnectionType,
    EndSessionRequest,
    EndSessionResponse,
    ErrorResponse,
    RecordingFile,
    SessionDetail,
    SessionRecord,
    SessionStatus,
    StartSessionRequest,
    StartSessionResponse,
    StudioStats,
    StudioStatsSummary,
)

__all__ = [
    "BandSessionStats",
    "ConnectionType",
    "EndSessionRequest",
    "EndSessionResponse",
    "ErrorResponse",
    "RecordingFile",
    "SessionDetail",
    "SessionRecord",
    "SessionStatus",
    "StartSessionRequest",
    "StartSessionResponse",
    "StudioStats",
    "StudioStatsSummary",
]
