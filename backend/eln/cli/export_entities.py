"""Command line export of notebook entities."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer
from sqlalchemy.orm import Session

from .. import models
from ..database import SessionLocal
from ..entities import Entity
from ..enums import EntityType
from ..exceptions import ElnError
from ..export import make_exporter

app = typer.Typer(help="Export experiments or items the way the API download does")


def export_entities(
    session: Session,
    *,
    entity_type: EntityType | str,
    user_email: str,
    ids: list[int],
    fmt: str = "json",
) -> tuple[str, str, int]:
    """Return ``(file_name, content, content_size)`` for the readable ids."""

    user = session.query(models.User).filter(models.User.email == user_email).first()
    if user is None:
        raise ValueError("User email does not correspond to a known user")
    maker = make_exporter(fmt, Entity(session, user, entity_type), ids)
    content = maker.get_file_content()
    return maker.get_file_name(), content, maker.content_size


@app.command()
def main(
    entity_type: EntityType = typer.Option(EntityType.EXPERIMENTS, help="Kind of entity to export"),
    user_email: str = typer.Option(..., help="Export with the read access of this user"),
    ids: List[int] = typer.Option(..., help="Entity id, repeat for several"),
    format: str = typer.Option("json", help="json or csv"),
    output: Optional[Path] = typer.Option(None, help="Destination file, defaults to the export file name"),
) -> None:
    session = SessionLocal()
    try:
        file_name, content, size = export_entities(
            session, entity_type=entity_type, user_email=user_email, ids=ids, fmt=format
        )
    except (ValueError, ElnError) as exc:
        raise typer.BadParameter(getattr(exc, "message", None) or str(exc))
    finally:
        session.close()
    destination = output or Path(file_name)
    destination.write_text(content, encoding="utf-8")
    typer.echo(json.dumps({"file": str(destination), "size": size}))


if __name__ == "__main__":
    app()
