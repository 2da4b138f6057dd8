from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from ..database import get_db
from ..auth import get_current_user
from ..enums import EntityType
from ..subresources import Comments
from .. import models, schemas
from .entities import load_entity

router = APIRouter(prefix="/api/{entity_type}/{entity_id}/comments", tags=["comments"])


@router.post("", response_model=schemas.CommentOut)
async def create_comment(
    entity_type: EntityType,
    entity_id: int,
    comment: schemas.CommentCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    comments = Comments(load_entity(db, user, entity_type, entity_id))
    comment_id = comments.create(comment.comment)
    return next(c for c in comments.read_all() if c["id"] == comment_id)


@router.get("", response_model=List[schemas.CommentOut])
async def list_comments(
    entity_type: EntityType,
    entity_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return Comments(load_entity(db, user, entity_type, entity_id)).read_all()


@router.patch("/{comment_id}", response_model=schemas.CommentOut)
async def update_comment(
    entity_type: EntityType,
    entity_id: int,
    comment_id: int,
    update: schemas.CommentCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    entity = load_entity(db, user, entity_type, entity_id)
    return Comments(entity, comment_id).update(update.comment)


@router.delete("/{comment_id}")
async def delete_comment(
    entity_type: EntityType,
    entity_id: int,
    comment_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    Comments(load_entity(db, user, entity_type, entity_id), comment_id).destroy()
    return {"detail": "deleted"}
