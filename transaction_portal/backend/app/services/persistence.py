# backend/app/services/persistence.py
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

log = logging.getLogger("portal.transactions")


@contextmanager
def atomic(db: Session, *, action: str) -> Iterator[Session]:
    """
    One unit of work: everything added inside the block is committed once at
    the end, or rolled back together.

    Persistence failures surface as a single 500 "Failed to <action>" no
    matter which statement broke; HTTPExceptions raised inside the block
    roll back and propagate unchanged.
    """
    try:
        yield db
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except SQLAlchemyError:
        db.rollback()
        log.exception("persistence failure during %s", action)
        raise HTTPException(status_code=500, detail=f"Failed to {action}")
