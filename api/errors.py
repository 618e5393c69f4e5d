"""
api/errors.py -- HTTPException factories shared by the route modules.

Every route error carries an ErrorDetail dict as its detail, which the
HTTPException handler in api/main.py places under the "error" key. These
helpers keep the codes consistent:

  401 unauthorized        -- auth/dependencies.py raises these itself
  403 forbidden           -- forbidden()
  404 <entity>_not_found  -- not_found("cart")
  409 conflict            -- conflict()
  400 <rule>              -- bad_request("not_purchased", "...")
"""

from fastapi import HTTPException

from api.models import ErrorDetail


def not_found(entity: str) -> HTTPException:
    """404 for a missing or soft-deleted record. entity is snake_case, e.g. "cart_item"."""
    label = entity.replace("_", " ").capitalize()
    return HTTPException(
        status_code=404,
        detail=ErrorDetail(code=f"{entity}_not_found", message=f"{label} not found.").model_dump(),
    )


def forbidden(message: str = "You do not have access to this resource.") -> HTTPException:
    return HTTPException(status_code=403, detail=ErrorDetail(code="forbidden", message=message).model_dump())


def conflict(message: str = "A record with the same unique value already exists.") -> HTTPException:
    return HTTPException(status_code=409, detail=ErrorDetail(code="conflict", message=message).model_dump())


def bad_request(code: str, message: str) -> HTTPException:
    return HTTPException(status_code=400, detail=ErrorDetail(code=code, message=message).model_dump())
