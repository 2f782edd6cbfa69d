"""
Sessions HTTP router.

Thin mapping layer: request validation and auth happen in FastAPI
dependencies, business logic in SessionModule, and this module only
translates OperationResult into status codes and JSON bodies.
"""

from typing import Any, Awaitable, Callable, List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from ..session import FailureKind, OperationResult, SessionModule
from .models import (
    EndSessionRequest,
    EndSessionResponse,
    ErrorResponse,
    SessionDetail,
    SessionStatus,
    StartSessionRequest,
    StartSessionResponse,
    StudioStats,
)

FAILURE_STATUS = {
    FailureKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureKind.STORE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

ERROR_RESPONSES = {
    401: {"description": "Missing or invalid credentials"},
    500: {"model": ErrorResponse, "description": "Store failure"},
}


def to_response(result: OperationResult) -> Any:
    """
    Translate an operation outcome into a transport response.

    Success values are returned as-is so the route's response_model and
    status_code apply; failures become {"error": ...} bodies.
    """
    if result.ok:
        return result.value

    return JSONResponse(
        status_code=FAILURE_STATUS.get(result.kind, status.HTTP_500_INTERNAL_SERVER_ERROR),
        content={"error": result.error},
    )


def create_sessions_router(
    get_session_module: Callable[[], SessionModule],
    require_auth: Callable[..., Awaitable[Any]],
) -> APIRouter:
    """
    Build the /api/sessions router.

    Args:
        get_session_module: Dependency returning the initialized SessionModule
        require_auth: Dependency that rejects unauthenticated requests

    Returns:
        APIRouter with every route guarded by require_auth
    """
    router = APIRouter(
        tags=["sessions"],
        dependencies=[Depends(require_auth)],
        responses=ERROR_RESPONSES,
    )

    # The collection answers with and without a trailing slash; no 307 redirect
    @router.get("", response_model=List[SessionDetail])
    @router.get("/", response_model=List[SessionDetail], include_in_schema=False)
    async def list_sessions(
        studio_id: Optional[str] = Query(None, description="Only sessions at this studio"),
        band_id: Optional[str] = Query(None, description="Only sessions of this band"),
        session_status: Optional[SessionStatus] = Query(
            None, alias="status", description="Only sessions in this state"
        ),
        sessions: SessionModule = Depends(get_session_module),
    ):
        """
        List sessions, most recent first.

        Returns:
            200: Matching sessions
            401: Unauthorized
            500: Store failure
        """
        result = await sessions.list_sessions(
            studio_id=studio_id, band_id=band_id, status=session_status
        )
        return to_response(result)

    @router.post("", response_model=StartSessionResponse, status_code=status.HTTP_201_CREATED)
    @router.post(
        "/",
        response_model=StartSessionResponse,
        status_code=status.HTTP_201_CREATED,
        include_in_schema=False,
    )
    async def start_session(
        request: StartSessionRequest,
        sessions: SessionModule = Depends(get_session_module),
    ):
        """
        Start a session for a band at a studio.

        Returns:
            201: Session started
            401: Unauthorized
            422: Missing or invalid fields
            500: Store failure
        """
        result = await sessions.create_session(request)
        return to_response(result)

    @router.put(
        "/{session_id}/end",
        response_model=EndSessionResponse,
        responses={404: {"model": ErrorResponse, "description": "Active session not found"}},
    )
    async def end_session(
        session_id: str,
        request: Optional[EndSessionRequest] = None,
        sessions: SessionModule = Depends(get_session_module),
    ):
        """
        End an active session and record its duration.

        Returns:
            200: Session ended, with duration_minutes
            401: Unauthorized
            404: No active session with this id
            500: Store failure
        """
        result = await sessions.end_session(session_id, request or EndSessionRequest())
        return to_response(result)

    @router.get("/stats/{studio_id}", response_model=StudioStats)
    async def studio_stats(
        studio_id: str,
        sessions: SessionModule = Depends(get_session_module),
    ):
        """
        Completed-session statistics for a studio.

        Returns:
            200: {summary, by_band}
            401: Unauthorized
            500: Store failure
        """
        result = await sessions.get_studio_stats(studio_id)
        return to_response(result)

    @router.get("/band/{band_id}", response_model=List[SessionDetail])
    async def band_sessions(
        band_id: str,
        sessions: SessionModule = Depends(get_session_module),
    ):
        """
        A band's session history in any status.

        Returns:
            200: Sessions, most recent first
            401: Unauthorized
            500: Store failure
        """
        result = await sessions.get_band_sessions(band_id)
        return to_response(result)

    @router.get(
        "/{session_id}",
        response_model=SessionDetail,
        responses={404: {"model": ErrorResponse, "description": "Session not found"}},
    )
    async def get_session(
        session_id: str,
        sessions: SessionModule = Depends(get_session_module),
    ):
        """
        One session with studio, band and user names.

        Returns:
            200: Session details
            401: Unauthorized
            404: Session not found
            500: Store failure
        """
        result = await sessions.get_session(session_id)
        return to_response(result)

    return router
