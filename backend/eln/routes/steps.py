from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from ..database import get_db
from ..auth import get_current_user
from ..enums import EntityType
from ..subresources import Steps
from .. import models, schemas
from .entities import load_entity

router = APIRouter(prefix="/api/{entity_type}/{entity_id}/steps", tags=["steps"])


@router.post("", response_model=schemas.StepOut)
async def create_step(
    entity_type: EntityType,
    entity_id: int,
    step: schemas.StepCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    steps = Steps(load_entity(db, user, entity_type, entity_id, "write"))
    step_id = steps.create(step.body)
    return next(s for s in steps.read_all() if s["id"] == step_id)


@router.get("", response_model=List[schemas.StepOut])
async def list_steps(
    entity_type: EntityType,
    entity_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return Steps(load_entity(db, user, entity_type, entity_id)).read_all()


@router.patch("/{step_id}", response_model=schemas.StepOut)
async def patch_step(
    entity_type: EntityType,
    entity_id: int,
    step_id: int,
    patch: schemas.StepPatch,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    entity = load_entity(db, user, entity_type, entity_id, "write")
    params = patch.model_dump(exclude_unset=True)
    action = params.pop("action", patch.action)
    return Steps(entity, step_id).patch(action, params)


@router.delete("/{step_id}")
async def delete_step(
    entity_type: EntityType,
    entity_id: int,
    step_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    Steps(load_entity(db, user, entity_type, entity_id, "write"), step_id).destroy()
    return {"detail": "deleted"}
