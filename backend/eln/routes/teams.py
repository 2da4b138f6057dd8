from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from ..database import get_db
from ..auth import get_current_user
from .. import models, schemas
from ..rbac import check_team_role

router = APIRouter(prefix="/api/teams", tags=["teams"])


@router.post("/", response_model=schemas.TeamOut)
async def create_team(
    team: schemas.TeamCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    db_team = models.Team(name=team.name, created_by=user.id)
    db.add(db_team)
    db.commit()
    db.refresh(db_team)
    membership = models.TeamMember(team_id=db_team.id, user_id=user.id, role="owner")
    db.add(membership)
    db.commit()
    return db_team


@router.get("/", response_model=List[schemas.TeamOut])
async def list_teams(
    db: Session = Depends(get_db), user: models.User = Depends(get_current_user)
):
    team_ids = [m.team_id for m in user.teams]
    if not team_ids:
        return []
    return db.query(models.Team).filter(models.Team.id.in_(team_ids)).all()


@router.post("/{team_id}/members", response_model=schemas.TeamMemberOut)
async def add_member(
    team_id: UUID,
    member: schemas.TeamMemberAdd,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    team = db.get(models.Team, team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")
    # only team owners may add members
    check_team_role(db, user, team_id, ["owner"])
    if member.user_id:
        db_user = db.get(models.User, member.user_id)
    elif member.email:
        db_user = db.query(models.User).filter(models.User.email == member.email).first()
    else:
        raise HTTPException(status_code=400, detail="user_id or email required")
    if not db_user:
        raise HTTPException(status_code=404, detail="User not found")
    if db.get(models.TeamMember, (team_id, db_user.id)):
        raise HTTPException(status_code=400, detail="User already member")
    membership = models.TeamMember(team_id=team_id, user_id=db_user.id, role=member.role)
    db.add(membership)
    db.commit()
    return schemas.TeamMemberOut(user=schemas.UserOut.model_validate(db_user), role=membership.role)
