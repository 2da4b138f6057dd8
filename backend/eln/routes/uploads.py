from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from typing import List
import io

from ..database import get_db
from ..auth import get_current_user
from ..enums import EntityType
from ..subresources import Uploads
from .. import models, schemas
from .entities import load_entity

router = APIRouter(prefix="/api/{entity_type}/{entity_id}/uploads", tags=["uploads"])


@router.post("", response_model=schemas.UploadOut)
async def upload_file(
    entity_type: EntityType,
    entity_id: int,
    upload: UploadFile = File(...),
    comment: str = Form(""),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    uploads = Uploads(load_entity(db, user, entity_type, entity_id, "write"))
    data = await upload.read()
    upload_id = uploads.create(upload.filename, data, upload.content_type, comment)
    return next(u for u in uploads.read_all() if u["id"] == upload_id)


@router.get("", response_model=List[schemas.UploadOut])
async def list_uploads(
    entity_type: EntityType,
    entity_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    return Uploads(load_entity(db, user, entity_type, entity_id)).read_all()


@router.get("/{upload_id}/download")
async def download_upload(
    entity_type: EntityType,
    entity_id: int,
    upload_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    entity = load_entity(db, user, entity_type, entity_id)
    db_upload, data = Uploads(entity, upload_id).read_binary()
    return StreamingResponse(
        io.BytesIO(data),
        media_type=db_upload.content_type,
        headers={"Content-Disposition": f"attachment; filename={db_upload.real_name}"},
    )


@router.delete("/{upload_id}")
async def delete_upload(
    entity_type: EntityType,
    entity_id: int,
    upload_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    Uploads(load_entity(db, user, entity_type, entity_id, "write"), upload_id).destroy()
    return {"detail": "deleted"}
