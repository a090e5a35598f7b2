"""Translate domain exceptions into HTTP errors"""

import logging

from fastapi import HTTPException

from spendmart_core.domain.exceptions import (
    AuthenticationError,
    DomainException,
    NotFoundError,
    PersistenceError,
    ValidationError,
)


def to_http_exception(error: DomainException, request_id: str) -> HTTPException:
    """
    Status mapping:
    - ValidationError      422, with per-field messages
    - AuthenticationError  401
    - NotFoundError        404
    - PersistenceError     503, with the store's message
    """
    if isinstance(error, ValidationError):
        logging.info(f"Validation failed: {error.errors}", extra={"request_id": request_id})
        return HTTPException(status_code=422, detail={"message": str(error), "errors": error.errors})

    if isinstance(error, AuthenticationError):
        return HTTPException(status_code=401, detail=str(error))

    if isinstance(error, NotFoundError):
        logging.warning(f"Not found: {error}", extra={"request_id": request_id})
        return HTTPException(status_code=404, detail=str(error))

    if isinstance(error, PersistenceError):
        logging.error(f"Store error: {error}", extra={"request_id": request_id})
        return HTTPException(status_code=503, detail=str(error))

    logging.error(f"Unexpected domain error: {error}", extra={"request_id": request_id})
    return HTTPException(status_code=500, detail="Internal server error")
