import json
import logging
import uuid
from datetime import UTC, datetime, timedelta
from typing import Callable, List, Optional

from ..api.models import (
    BandSessionStats,
    EndSessionRequest,
    EndSessionResponse,
    SessionDetail,
    SessionStatus,
    StartSessionRequest,
    StartSessionResponse,
    StudioStats,
    StudioStatsSummary,
)
from ..storage import QueryExecutor, Transaction
from .results import OperationResult

logger = logging.getLogger(__name__)

SESSION_DETAIL_SELECT = """
    SELECT ss.*,
           rs.studio_name,
           b.band_name,
           u.name AS user_name
    FROM studio_sessions ss
    JOIN recording_studios rs ON ss.studio_id = rs.id
    JOIN bands b ON ss.band_id = b.id
    LEFT JOIN users u ON ss.user_id = u.id
"""

MOST_RECENT_FIRST = " ORDER BY ss.session_date DESC, ss.start_time DESC"

INSERT_SESSION = """
    INSERT INTO studio_sessions
    (id, studio_id, band_id, user_id, session_date, start_time, connection_type,
     session_notes, livekit_room_name, status, created_at)
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, 'active', $10)
"""

# Only one caller can flip a given session out of 'active'
CLAIM_ACTIVE_SESSION = """
    UPDATE studio_sessions
    SET status = 'completed', end_time = $1
    WHERE id = $2 AND status = 'active'
"""

FINISH_SESSION_CLEAR = """
    UPDATE studio_sessions
    SET duration_minutes = $1, session_notes = $2, recording_files = $3
    WHERE id = $4
"""

FINISH_SESSION_PRESERVE = """
    UPDATE studio_sessions
    SET duration_minutes = $1,
        session_notes = COALESCE($2, session_notes),
        recording_files = COALESCE($3, recording_files)
    WHERE id = $4
"""

STUDIO_SUMMARY = """
    SELECT
      COUNT(*) AS total_sessions,
      SUM(duration_minutes) AS total_minutes,
      AVG(duration_minutes) AS avg_duration
    FROM studio_sessions
    WHERE studio_id = $1 AND status = 'completed'
"""

STUDIO_BY_BAND = """
    SELECT
      b.id AS band_id,
      b.band_name,
      COUNT(*) AS session_count,
      SUM(ss.duration_minutes) AS total_minutes
    FROM studio_sessions ss
    JOIN bands b ON ss.band_id = b.id
    WHERE ss.studio_id = $1 AND ss.status = 'completed'
    GROUP BY b.id, b.band_name
    ORDER BY total_minutes DESC
"""


def compute_duration_minutes(start_time: datetime, end_time: datetime) -> int:
    """
    Whole minutes between two timestamps, rounding half up.

    Both timestamps are truncated to millisecond precision first, so
    5m30s gives 6 and 5m29.999s gives 5.
    """
    elapsed_ms = (end_time - start_time) // timedelta(milliseconds=1)
    return (elapsed_ms + 30_000) // 60_000


def _as_datetime(value) -> datetime:
    """Stores without a native timestamp type hand back ISO text."""
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SessionModule:
    """
    Session resource handler.

    Every operation catches store faults at its boundary and reports them
    as an OperationResult; nothing raises to the caller.
    """

    def __init__(
        self,
        executor: QueryExecutor,
        notes_policy: str = "clear",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize session module.

        Args:
            executor: Query executor for the relational store
            notes_policy: On end, "clear" writes null for omitted notes and
                recording files; "preserve" keeps the stored values
            clock: Returns the current aware UTC time (tests pin it)
        """
        if notes_policy not in ("clear", "preserve"):
            raise ValueError(f"Unknown notes policy: {notes_policy}")
        self.executor = executor
        self.notes_policy = notes_policy
        self._clock = clock or _utcnow

    async def list_sessions(
        self,
        studio_id: Optional[str] = None,
        band_id: Optional[str] = None,
        status: Optional[SessionStatus] = None,
    ) -> OperationResult[List[SessionDetail]]:
        """
        List sessions matching all supplied filters, most recent first.

        Placeholders are numbered in the order filters are added.
        """
        try:
            query_text = SESSION_DETAIL_SELECT + " WHERE 1=1"
            params: list = []

            if studio_id:
                params.append(studio_id)
                query_text += f" AND ss.studio_id = ${len(params)}"

            if band_id:
                params.append(band_id)
                query_text += f" AND ss.band_id = ${len(params)}"

            if status:
                params.append(SessionStatus(status).value)
                query_text += f" AND ss.status = ${len(params)}"

            query_text += MOST_RECENT_FIRST

            rows = await self.executor.fetch_all(query_text, params)
            return OperationResult.success([SessionDetail.model_validate(row) for row in rows])
        except Exception as e:
            logger.error(f"Get sessions error: {e}", exc_info=True)
            return OperationResult.store_error("Failed to fetch sessions")

    async def get_session(self, session_id: str) -> OperationResult[SessionDetail]:
        """Fetch one session with its studio, band and user names."""
        try:
            row = await self.executor.fetch_one(
                SESSION_DETAIL_SELECT + " WHERE ss.id = $1", [session_id]
            )
            if row is None:
                return OperationResult.not_found("Session not found")
            return OperationResult.success(SessionDetail.model_validate(row))
        except Exception as e:
            logger.error(f"Get session error for {session_id}: {e}", exc_info=True)
            return OperationResult.store_error("Failed to fetch session")

    async def create_session(
        self, request: StartSessionRequest
    ) -> OperationResult[StartSessionResponse]:
        """
        Start a new active session.

        The server assigns id, session_date, start_time and status; the
        client cannot supply them.
        """
        now = self._clock()
        session_id = str(uuid.uuid4())
        start_time = now.isoformat(timespec="milliseconds")

        params = [
            session_id,
            request.studio_id,
            request.band_id,
            request.user_id,
            now.date().isoformat(),
            start_time,
            request.connection_type.value,
            request.session_notes,
            request.livekit_room_name,
            start_time,
        ]

        def _insert(tx: Transaction) -> dict:
            tx.execute(INSERT_SESSION, params)
            return tx.fetch_one("SELECT * FROM studio_sessions WHERE id = $1", [session_id])

        try:
            row = await self.executor.run_in_transaction(_insert)
            logger.info(
                f"Session {session_id} started for band {request.band_id} "
                f"at studio {request.studio_id}"
            )
            return OperationResult.success(StartSessionResponse.model_validate(row))
        except Exception as e:
            logger.error(f"Create session error: {e}", exc_info=True)
            return OperationResult.store_error("Failed to start session")

    async def end_session(
        self, session_id: str, request: EndSessionRequest
    ) -> OperationResult[EndSessionResponse]:
        """
        End an active session and record its duration.

        The status flip is a conditional update, so of several concurrent
        calls for the same session exactly one succeeds; the rest see
        not-found and change nothing.
        """
        recording_files = None
        if request.recording_files is not None:
            recording_files = json.dumps(
                [f.model_dump(exclude_none=True) for f in request.recording_files]
            )

        finish_sql = FINISH_SESSION_PRESERVE if self.notes_policy == "preserve" else FINISH_SESSION_CLEAR

        def _end(tx: Transaction) -> Optional[int]:
            end_time = self._clock()
            claimed = tx.execute(
                CLAIM_ACTIVE_SESSION,
                [end_time.isoformat(timespec="milliseconds"), session_id],
            )
            if claimed == 0:
                return None

            row = tx.fetch_one(
                "SELECT start_time FROM studio_sessions WHERE id = $1", [session_id]
            )
            duration = compute_duration_minutes(_as_datetime(row["start_time"]), end_time)
            tx.execute(
                finish_sql,
                [duration, request.session_notes, recording_files, session_id],
            )
            return duration

        try:
            duration = await self.executor.run_in_transaction(_end)
        except Exception as e:
            logger.error(f"End session error for {session_id}: {e}", exc_info=True)
            return OperationResult.store_error("Failed to end session")

        if duration is None:
            return OperationResult.not_found("Active session not found")

        logger.info(f"Session {session_id} ended after {duration} minutes")
        return OperationResult.success(EndSessionResponse(duration_minutes=duration))

    async def get_studio_stats(self, studio_id: str) -> OperationResult[StudioStats]:
        """
        Completed-session statistics for a studio.

        Aggregates are passed through as the store returns them, so a studio
        with no completed sessions has null totals and an empty breakdown.
        """
        def _stats(tx: Transaction):
            summary = tx.fetch_one(STUDIO_SUMMARY, [studio_id])
            by_band = tx.fetch_all(STUDIO_BY_BAND, [studio_id])
            return summary, by_band

        try:
            summary, by_band = await self.executor.run_in_transaction(_stats)
            return OperationResult.success(
                StudioStats(
                    summary=StudioStatsSummary.model_validate(summary),
                    by_band=[BandSessionStats.model_validate(row) for row in by_band],
                )
            )
        except Exception as e:
            logger.error(f"Get stats error for studio {studio_id}: {e}", exc_info=True)
            return OperationResult.store_error("Failed to fetch statistics")

    async def get_band_sessions(self, band_id: str) -> OperationResult[List[SessionDetail]]:
        """A band's full session history in any status, most recent first."""
        try:
            rows = await self.executor.fetch_all(
                SESSION_DETAIL_SELECT + " WHERE ss.band_id = $1" + MOST_RECENT_FIRST,
                [band_id],
            )
            return OperationResult.success([SessionDetail.model_validate(row) for row in rows])
        except Exception as e:
            logger.error(f"Get band sessions error for band {band_id}: {e}", exc_info=True)
            return OperationResult.store_error("Failed to fetch sessions")
