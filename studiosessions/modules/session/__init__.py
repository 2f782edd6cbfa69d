"""
Session Module - Black Box Interface

Purpose: Studio session lifecycle, history and statistics
Interface: list_sessions(), get_session(), create_session(), end_session(),
           get_studio_stats(), get_band_sessions()
Hidden: SQL composition, duration rules, transaction boundaries

Every operation returns an OperationResult instead of raising, so callers
map outcomes to their own transport.
"""

from .results import FailureKind, OperationResult
from .session import SessionModule, compute_duration_minutes

__all__ = ["FailureKind", "OperationResult", "SessionModule", "compute_duration_minutes"]
