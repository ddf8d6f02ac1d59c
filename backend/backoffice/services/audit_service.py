# Overview: Best-effort audit sink writing SystemLog entries after the triggering commit.

"""
Audit Log Invariants (authoritative)

- Append-only: entries are never updated or deleted.
- record() is called only after the triggering transaction has committed,
  so an entry never describes state that was rolled back.
- record() never raises. It writes in its own short-lived session so a
  failed audit write cannot disturb the caller's session; failures are
  logged and swallowed.
"""

from __future__ import annotations

import logging

from flask import current_app, has_app_context
from sqlalchemy.orm import Session

from ..extensions import db
from ..models import SystemLog

logger = logging.getLogger(__name__)

FALLBACK_ACTOR = "System"


def resolve_actor(actor: str | None) -> str:
    """Blank or missing actors are attributed to the configured default."""
    if actor and str(actor).strip():
        return str(actor).strip()
    if has_app_context():
        return current_app.config.get("DEFAULT_ACTOR", FALLBACK_ACTOR)
    return FALLBACK_ACTOR


def record(description: str, actor: str | None = None) -> SystemLog | None:
    """Append one audit entry. Returns the entry, or None if the write failed."""
    created_by = resolve_actor(actor)
    try:
        with Session(db.engine, expire_on_commit=False) as session:
            entry = SystemLog(log_description=description, log_created_by=created_by)
            session.add(entry)
            session.commit()
            session.refresh(entry)
        logger.info("System log created: %s by %s", description, created_by)
        return entry
    except Exception:
        logger.exception("Error creating system log: %s", description)
        return None


def list_entries(limit: int | None = None) -> list[SystemLog]:
    """Chronological listing, newest first."""
    query = db.session.query(SystemLog).order_by(
        SystemLog.log_datetime.desc(),
        SystemLog.log_id.desc(),
    )
    if limit:
        query = query.limit(limit)
    return query.all()
