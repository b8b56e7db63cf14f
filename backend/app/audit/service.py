import http
import logging
from typing import Optional, Tuple

from fastapi import Request
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..models.Audit import AuditLog

logger = logging.getLogger(__name__)

GENESIS_HASH = "00000000000000000000000000000000"

def format_action(method: str, path: str, status_code: int) -> str:
    """
    Builds the "<METHOD> <path> <status> <phrase>" action string stored with each event.
    """
    return f"{method} {path} {status_code} {http.HTTPStatus(status_code).phrase}"

# Each round of contention has one winner, so a writer loses at most once per concurrent writer
APPEND_ATTEMPTS = 10

def log_event(db: Session, actor_id: int, action: str, details: Optional[str] = None) -> AuditLog:
    """
    Appends an event to the AuditLog chain and commits it.
    A concurrent append on the same tail fails the unique previous_hash;
    the loser re-reads the tail and links behind the winner.
    """
    for attempt in range(1, APPEND_ATTEMPTS + 1):
        last_entry = db.exec(select(AuditLog).order_by(AuditLog.id.desc())).first()
        previous_hash = last_entry.current_hash if last_entry else GENESIS_HASH

        new_log = AuditLog(
            actor_id=actor_id,
            action=action,
            details=details or "",
            previous_hash=previous_hash,
            current_hash="",
        ).seal()
        db.add(new_log)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            if attempt == APPEND_ATTEMPTS:
                raise
            logger.debug("Audit tail moved, relinking (attempt %d)", attempt)
            continue

        db.refresh(new_log)
        return new_log

def record(request: Request, db: Session, actor_id: int, status_code: int, details: Optional[str] = None) -> Optional[AuditLog]:
    """
    Audit helper for routers: records the current request when the audit trail is enabled.
    """
    if not request.app.state.settings.AUDIT_LOG_ENABLED:
        return None
    action = format_action(request.method, request.url.path, status_code)
    try:
        return log_event(db, actor_id, action, details)
    except Exception:
        # Audit failures never fail the audited request
        db.rollback()
        logger.exception("Failed to write audit event", extra={"path": request.url.path})
        return None

def verify_chain(db: Session) -> Tuple[bool, Optional[int]]:
    """
    Walks the chain in id order. Returns (True, None) when intact,
    otherwise (False, id of the first entry whose hash or link is wrong).
    """
    previous_hash = GENESIS_HASH
    for entry in db.exec(select(AuditLog).order_by(AuditLog.id.asc())):
        if entry.previous_hash != previous_hash:
            return False, entry.id
        if entry.calculate_hash() != entry.current_hash:
            return False, entry.id
        previous_hash = entry.current_hash
    return True, None
