"""
Retry and failure helpers for calls to the database and storage backends
"""

import logging
import time
from typing import Callable, Optional, TypeVar

from fastapi import HTTPException
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import READ_RETRY_ATTEMPTS, READ_RETRY_BASE_DELAY

logger = logging.getLogger(__name__)

T = TypeVar("T")

COLLABORATOR_ERRORS = (SQLAlchemyError, RedisError)

RETRY_MESSAGE = "Something went wrong. Please try again."


def retry_read(
    operation: Callable[[], T],
    description: str,
    db: Optional[Session] = None,
    max_retries: int = READ_RETRY_ATTEMPTS,
    retry_delay: float = READ_RETRY_BASE_DELAY,
) -> T:
    """
    Run an idempotent read with exponential backoff retry logic.
    Only use for reads; writes must not be retried.
    """
    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    for attempt in range(max_retries):
        try:
            return operation()
        except COLLABORATOR_ERRORS as e:
            if db is not None:
                db.rollback()
            logger.warning(f"🔄 Retry {attempt + 1}/{max_retries} for {description}: {str(e)}")
            if attempt == max_retries - 1:
                logger.error(f"❌ All retries failed for {description}: {str(e)}")
                raise
        # Exponential backoff
        time.sleep(retry_delay * (2**attempt))
    raise AssertionError(f"retry loop exited without result for {description}")


def service_unavailable(action: str, error: Exception) -> HTTPException:
    """Log a collaborator failure and build the generic retry-prompt error"""
    logger.error(f"❌ {action} failed: {type(error).__name__}: {str(error)}")
    return HTTPException(status_code=503, detail=RETRY_MESSAGE)
