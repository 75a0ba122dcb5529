"""
Business Calendar API Dependencies

Dependency injection for the built calendar held on application state.
"""

from fastapi import HTTPException, Request, status

from calendar_engine.builder import BusinessCalendar


async def get_calendar(request: Request) -> BusinessCalendar:
    """Return the calendar built during startup."""
    calendar = getattr(request.app.state, "calendar", None)
    if calendar is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Business calendar is not built yet",
        )
    return calendar
