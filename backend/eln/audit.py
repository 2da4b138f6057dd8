from datetime import datetime, timezone
from uuid import UUID
from sqlalchemy.orm import Session
from . import models


def log_action(
    db: Session,
    user_id: str | UUID,
    action: str,
    target_type: str | None = None,
    target_id: str | int | None = None,
    details: dict | None = None,
):
    log = models.AuditLog(
        user_id=UUID(str(user_id)),
        action=action,
        target_type=target_type,
        target_id=str(target_id) if target_id is not None else None,
        details=details or {},
        created_at=datetime.now(timezone.utc),
    )
    db.add(log)
    db.commit()
    db.refresh(log)
    return log


def entity_changelog(db: Session, target_type: str, target_id: int) -> list[models.AuditLog]:
    return (
        db.query(models.AuditLog)
        .filter(
            models.AuditLog.target_type == target_type,
            models.AuditLog.target_id == str(target_id),
        )
        .order_by(models.AuditLog.created_at)
        .all()
    )
