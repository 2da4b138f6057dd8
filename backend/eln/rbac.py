from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.orm import Session

from . import models


def check_team_role(db: Session, user: models.User, team_id: UUID, roles: list[str] | tuple[str, ...]):
    if user.is_admin:
        return
    membership = (
        db.query(models.TeamMember)
        .filter(models.TeamMember.team_id == team_id, models.TeamMember.user_id == user.id)
        .first()
    )
    if not membership or membership.role not in roles:
        raise HTTPException(status_code=403, detail="Not authorized")
