from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Any, List, Optional

from ..database import get_db
from ..auth import get_current_user
from ..entities import Entity
from ..enums import EntityType, State
from .. import audit, models, pubsub, schemas

router = APIRouter(prefix="/api", tags=["entities"])


def load_entity(
    db: Session,
    user: models.User,
    entity_type: EntityType,
    entity_id: int,
    rw: str = "read",
) -> Entity:
    entity = Entity(db, user, entity_type, entity_id)
    entity.can_or_explode(rw)
    return entity


@router.get("/{entity_type}", response_model=List[schemas.EntitySummaryOut])
async def list_entities(
    entity_type: EntityType,
    q: Optional[str] = None,
    category: Optional[int] = None,
    state: List[State] = Query(default=[State.NORMAL]),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    entity = Entity(db, user, entity_type)
    return entity.read_all(q=q, category=category, states=state, limit=limit, offset=offset)


@router.post("/{entity_type}", response_model=schemas.CreatedOut)
async def create_entity(
    entity_type: EntityType,
    payload: schemas.EntityCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    entity = Entity(db, user, entity_type)
    new_id = entity.create(
        template_id=payload.template,
        category_id=payload.category_id,
        title=payload.title,
        tags=payload.tags,
    )
    await pubsub.publish_entity_event(entity.row.team_id, entity_type.value, new_id, "entity_created")
    return schemas.CreatedOut(id=new_id)


@router.get("/{entity_type}/{entity_id}")
async def get_entity(
    entity_type: EntityType,
    entity_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> dict[str, Any]:
    return Entity(db, user, entity_type, entity_id).read_one()


@router.patch("/{entity_type}/{entity_id}")
async def patch_entity(
    entity_type: EntityType,
    entity_id: int,
    patch: schemas.EntityPatch,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> dict[str, Any]:
    entity = load_entity(db, user, entity_type, entity_id)
    params = patch.model_dump(exclude_unset=True)
    action = params.pop("action", patch.action)
    data = entity.patch(action, params)
    await pubsub.publish_entity_event(entity.row.team_id, entity_type.value, entity_id, "entity_updated")
    return data


@router.delete("/{entity_type}/{entity_id}")
async def delete_entity(
    entity_type: EntityType,
    entity_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    entity = load_entity(db, user, entity_type, entity_id)
    entity.destroy()
    await pubsub.publish_entity_event(entity.row.team_id, entity_type.value, entity_id, "entity_deleted")
    return {"detail": "deleted"}


@router.post("/{entity_type}/{entity_id}/duplicate", response_model=schemas.CreatedOut)
async def duplicate_entity(
    entity_type: EntityType,
    entity_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    entity = load_entity(db, user, entity_type, entity_id)
    new_id = entity.duplicate()
    await pubsub.publish_entity_event(entity.row.team_id, entity_type.value, new_id, "entity_created")
    return schemas.CreatedOut(id=new_id)


@router.get("/{entity_type}/{entity_id}/changelog", response_model=List[schemas.AuditLogOut])
async def entity_changelog(
    entity_type: EntityType,
    entity_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    load_entity(db, user, entity_type, entity_id)
    return audit.entity_changelog(db, entity_type.value, entity_id)
