from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth import get_current_user
from ..entities import Entity
from ..enums import EntityType
from ..export import make_exporter
from .. import models

router = APIRouter(prefix="/api/export", tags=["export"])


def parse_ids(raw: str) -> list[int]:
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid id list")


@router.get("")
async def export_entities(
    entity_type: EntityType,
    ids: str,
    format: str = "json",
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    id_list = parse_ids(ids)
    if not id_list:
        raise HTTPException(status_code=400, detail="No id to export")
    maker = make_exporter(format, Entity(db, user, entity_type), id_list)
    content = maker.get_file_content()
    headers = {
        "Content-Disposition": f"attachment; filename={maker.get_file_name()}",
        "Content-Length": str(maker.content_size),
    }
    return Response(content=content.encode("utf-8"), media_type=maker.content_type, headers=headers)
