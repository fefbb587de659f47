"""
YieldOps API Dependencies

Dependency injection for the yield engine owned by the running app.
"""

from fastapi import HTTPException, Request, status

from revenue.engine import YieldEngine


def get_engine(request: Request) -> YieldEngine:
    """Return the engine created in the app lifespan."""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Yield engine not initialized",
        )
    return engine
