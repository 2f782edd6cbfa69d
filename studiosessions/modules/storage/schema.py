"""
Relational schema for the studio sessions store.

Production databases already carry these tables. The declarations are used
to bootstrap development and test databases.
"""

import datetime

from sqlalchemy import JSON, CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()

CONNECTION_TYPES = ("sonobus", "webrtc", "both", "livekit")
SESSION_STATUSES = ("active", "completed", "cancelled")


def _utcnow():
    return datetime.datetime.now(datetime.UTC)


def _sql_list(values):
    return ", ".join(f"'{value}'" for value in values)


class User(Base):
    __tablename__ = "users"
    id = Column(String(36), primary_key=True)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(255), nullable=False)


class Band(Base):
    __tablename__ = "bands"
    id = Column(String(36), primary_key=True)
    band_name = Column(String(255), nullable=False)


class RecordingStudio(Base):
    __tablename__ = "recording_studios"
    id = Column(String(36), primary_key=True)
    studio_name = Column(String(255), nullable=False)


class StudioSession(Base):
    __tablename__ = "studio_sessions"
    __table_args__ = (
        CheckConstraint(
            f"connection_type IN ({_sql_list(CONNECTION_TYPES)})",
            name="ck_studio_sessions_connection_type",
        ),
        CheckConstraint(
            f"status IN ({_sql_list(SESSION_STATUSES)})",
            name="ck_studio_sessions_status",
        ),
    )

    id = Column(String(36), primary_key=True)
    studio_id = Column(String(36), ForeignKey("recording_studios.id", ondelete="CASCADE"), nullable=False)
    band_id = Column(String(36), ForeignKey("bands.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    session_date = Column(Date, nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    connection_type = Column(String(50), nullable=True)
    session_notes = Column(Text, nullable=True)
    recording_files = Column(JSON, nullable=True)
    status = Column(String(50), nullable=False, default="active")
    livekit_room_name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
