from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional

from ..database import get_db
from ..auth import get_current_user
from ..enums import EntityType
from ..rbac import check_team_role
from .. import models, schemas

router = APIRouter(prefix="/api", tags=["categories"])


def _resolve_team(db: Session, user: models.User, team_id):
    if team_id:
        check_team_role(db, user, team_id, ["owner", "manager", "member"])
        return team_id
    return user.teams[0].team_id if user.teams else None


def _visible(query, model, user: models.User):
    team_ids = [m.team_id for m in user.teams]
    return query.filter((model.team_id.is_(None)) | (model.team_id.in_(team_ids)))


@router.post("/experiments_categories", response_model=schemas.CategoryOut)
async def create_category(
    category: schemas.CategoryCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    db_category = models.ExperimentsCategory(
        team_id=_resolve_team(db, user, category.team_id),
        title=category.title,
        color=category.color,
        is_default=category.is_default,
    )
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    return db_category


@router.get("/experiments_categories", response_model=List[schemas.CategoryOut])
async def list_categories(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    query = _visible(db.query(models.ExperimentsCategory), models.ExperimentsCategory, user)
    return query.order_by(models.ExperimentsCategory.title).all()


@router.post("/statuses", response_model=schemas.StatusOut)
async def create_status(
    status: schemas.StatusCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    if status.entity_type not in (EntityType.EXPERIMENTS.value, EntityType.ITEMS.value):
        raise HTTPException(status_code=400, detail="Statuses exist for experiments and items only")
    team_id = _resolve_team(db, user, status.team_id)
    if status.is_default:
        # a single default per team and entity type
        db.query(models.Status).filter(
            models.Status.team_id == team_id,
            models.Status.entity_type == status.entity_type,
        ).update({models.Status.is_default: False})
    db_status = models.Status(
        team_id=team_id,
        entity_type=status.entity_type,
        title=status.title,
        color=status.color,
        is_default=status.is_default,
    )
    db.add(db_status)
    db.commit()
    db.refresh(db_status)
    return db_status


@router.get("/statuses", response_model=List[schemas.StatusOut])
async def list_statuses(
    entity_type: Optional[str] = None,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    query = _visible(db.query(models.Status), models.Status, user)
    if entity_type:
        query = query.filter(models.Status.entity_type == entity_type)
    return query.order_by(models.Status.title).all()
