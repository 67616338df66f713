# orderahead/api/deps.py
from fastapi import HTTPException, Query

from orderahead.domain.context import OwnerContext
from orderahead.domain.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)


def get_owner(owner_id: str = Query(..., min_length=1)) -> OwnerContext:
    return OwnerContext(owner_id=owner_id)


def http_error(e: Exception) -> HTTPException:
    """Domain error -> HTTP status the clients expect."""
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, PermissionError):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (InvalidTransitionError, ConflictError)):
        #owner UI shows it inline and refreshes, never retries with another target
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, PersistenceError):
        return HTTPException(status_code=503, detail="Something went wrong. Please try again")
    return HTTPException(status_code=500, detail="Internal server error")
