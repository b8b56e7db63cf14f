import hashlib
from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from ..core.database import as_utc, utcnow


def chain_hash(previous_hash: str, timestamp: datetime, actor_id: int, action: str, details: str) -> str:
    """
    SHA-256 over the link to the previous entry and this entry's content.
    The timestamp is hashed as UTC at second precision.
    """
    stamp = as_utc(timestamp).replace(microsecond=0).isoformat()
    material = "".join((previous_hash, stamp, str(actor_id), action, details or ""))
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


class AuditLog(SQLModel, table=True):
    """
    Append-only request trail. Each entry links to the hash of the one before it;
    previous_hash is unique, so two writers can never extend the same entry.
    """
    __tablename__ = "audit_logs"

    id: int | None = Field(default=None, primary_key=True)
    timestamp: datetime = Field(
        default_factory=lambda: utcnow().replace(microsecond=0),
        sa_type=DateTime(timezone=True),
    )
    actor_id: int = Field(index=True)  # 0 when no user is authenticated
    action: str
    details: str = ""
    previous_hash: str = Field(unique=True)
    current_hash: str

    def calculate_hash(self) -> str:
        return chain_hash(self.previous_hash, self.timestamp, self.actor_id, self.action, self.details)

    def seal(self) -> "AuditLog":
        self.current_hash = self.calculate_hash()
        return self
