"""FastAPI dependencies for progress tracking.

Provides dependency injection for:
- ProgressTracker
- Error handlers
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import ProgressError, ProgressTracker


async def get_progress_tracker(request: Request) -> ProgressTracker:
    """Get progress tracker from app state."""
    tracker = getattr(request.app.state, "progress_tracker", None)
    if tracker is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Progress service not available",
        )
    return tracker


# Type alias for dependency injection
ProgressTrackerDep = Annotated[ProgressTracker, Depends(get_progress_tracker)]


def handle_progress_error(error: ProgressError) -> HTTPException:
    """Convert progress errors to HTTP exceptions.

    The detail carries the error code and any structured extras (e.g. the
    blocking chapter) next to the message.
    """
    status_map = {
        "not_found": status.HTTP_404_NOT_FOUND,
        "forbidden": status.HTTP_403_FORBIDDEN,
        "prerequisite_not_met": status.HTTP_400_BAD_REQUEST,
        "already_completed": status.HTTP_400_BAD_REQUEST,
    }

    status_code = status_map.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    return HTTPException(
        status_code=status_code,
        detail={"message": error.message, "code": error.code, **error.extra},
    )
