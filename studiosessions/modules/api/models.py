"""
Studio Sessions shared data models.

These models define the structure of all data passed between
components in the Studio Sessions system.
"""

import json
from datetime import date, datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Enums


class SessionStatus(str, Enum):
    """Lifecycle state of a studio session."""

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ConnectionType(str, Enum):
    """How the band connects to the studio."""

    SONOBUS = "sonobus"
    WEBRTC = "webrtc"
    BOTH = "both"
    LIVEKIT = "livekit"


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


# Request Models (API Input)


class RecordingFile(BaseModel):
    """Reference to a file recorded during a session."""

    model_config = ConfigDict(extra="allow")

    filename: str = Field(..., min_length=1, max_length=500)
    url: Optional[str] = None
    size: Optional[int] = Field(None, ge=0)
    format: Optional[str] = None
    uploadedAt: Optional[str] = None


class StartSessionRequest(BaseModel):
    """Request to start a studio session."""

    studio_id: str = Field(..., description="Recording studio identifier", min_length=1, max_length=36)
    band_id: str = Field(..., description="Band identifier", min_length=1, max_length=36)
    user_id: Optional[str] = Field(None, description="User running the session", max_length=36)
    connection_type: ConnectionType = Field(
        default=ConnectionType.BOTH, description="Connection method for the session"
    )
    session_notes: Optional[str] = Field(None, description="Free-form notes")
    livekit_room_name: Optional[str] = Field(None, description="LiveKit room, if any", max_length=255)

    @field_validator("studio_id", "band_id", mode="before")
    @classmethod
    def strip_ids(cls, v):
        """Reject whitespace-only identifiers."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("connection_type", mode="before")
    @classmethod
    def default_connection_type(cls, v):
        """Treat null or empty connection_type as the default."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return ConnectionType.BOTH
        return v

    @field_validator("user_id", "session_notes", "livekit_room_name", mode="before")
    @classmethod
    def empty_as_null(cls, v):
        return _blank_to_none(v)


class EndSessionRequest(BaseModel):
    """Request to end an active studio session."""

    session_notes: Optional[str] = Field(None, description="Closing notes")
    recording_files: Optional[List[RecordingFile]] = Field(
        None, description="Files recorded during the session", max_length=500
    )

    @field_validator("session_notes", mode="before")
    @classmethod
    def empty_as_null(cls, v):
        return _blank_to_none(v)


# Response Models (API Output)


class SessionRecord(BaseModel):
    """A stored studio session."""

    id: str
    studio_id: str
    band_id: str
    user_id: Optional[str] = None
    session_date: date
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    connection_type: Optional[str] = None
    session_notes: Optional[str] = None
    recording_files: Optional[Any] = None
    status: SessionStatus
    livekit_room_name: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("recording_files", mode="before")
    @classmethod
    def decode_recording_files(cls, v):
        """Stores without a native JSON type hand back the serialized text."""
        if isinstance(v, (str, bytes)):
            return json.loads(v)
        return v


class SessionDetail(SessionRecord):
    """A studio session joined with studio, band and user names."""

    studio_name: Optional[str] = None
    band_name: Optional[str] = None
    user_name: Optional[str] = None


class StartSessionResponse(SessionRecord):
    """Response after starting a session."""

    message: str = "Session started successfully"


class EndSessionResponse(BaseModel):
    """Response after ending a session."""

    message: str = "Session ended successfully"
    duration_minutes: int


class StudioStatsSummary(BaseModel):
    """Aggregates over a studio's completed sessions; null when there are none."""

    total_sessions: int
    total_minutes: Optional[int] = None
    avg_duration: Optional[float] = None


class BandSessionStats(BaseModel):
    """Completed-session totals for one band at a studio."""

    band_id: str
    band_name: str
    session_count: int
    total_minutes: Optional[int] = None


class StudioStats(BaseModel):
    """Combined studio statistics."""

    summary: StudioStatsSummary
    by_band: List[BandSessionStats]


class ErrorResponse(BaseModel):
    """Error body returned by the sessions API."""

    error: str
