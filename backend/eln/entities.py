"""Notebook entities: experiments, items, experiment templates and item types.

All four kinds share one table layout (see ``models.EntityMixin``) and are
handled by :class:`Entity`. The instance is bound to the acting user, so
every permission check answers "may *this* user read/write *this* row".
"""

from __future__ import annotations

import json
import logging
import secrets
from datetime import date
from typing import Any

import sqlalchemy as sa
from sqlalchemy.orm import Session

from . import audit, models, search
from .enums import Action, EntityType, LinkKind, Permission, State
from .exceptions import (
    IllegalActionError,
    ImproperActionError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from .links import Links
from .subresources import Comments, Steps, Tags, Uploads

logger = logging.getLogger(__name__)

ENTITY_MODELS = {
    EntityType.EXPERIMENTS: models.Experiment,
    EntityType.ITEMS: models.Item,
    EntityType.TEMPLATES: models.ExperimentTemplate,
    EntityType.ITEMS_TYPES: models.ItemsType,
}

# kinds that have a date, an elabid, a status and a rating
_DATED = (EntityType.EXPERIMENTS, EntityType.ITEMS)

_COMMON_FIELDS = {"title", "body", "metadata", "canread", "canwrite"}
_UPDATABLE_FIELDS = {
    EntityType.EXPERIMENTS: _COMMON_FIELDS | {"date", "rating", "category", "status"},
    EntityType.ITEMS: _COMMON_FIELDS | {"date", "rating", "category", "status", "is_bookable"},
    EntityType.TEMPLATES: _COMMON_FIELDS | {"category"},
    EntityType.ITEMS_TYPES: _COMMON_FIELDS | {"color", "is_bookable"},
}


def generate_elabid(today: date | None = None) -> str:
    today = today or date.today()
    return f"{today:%Y%m%d}-{secrets.token_hex(20)}"


class Entity:
    def __init__(
        self,
        db: Session,
        user: models.User,
        entity_type: EntityType | str,
        entity_id: int | None = None,
    ):
        self.db = db
        self.user = user
        self.entity_type = EntityType(entity_type)
        self.model = ENTITY_MODELS[self.entity_type]
        self.id: int | None = None
        self.row = None
        if entity_id is not None:
            self.set_id(entity_id)

    @property
    def type(self) -> str:
        return self.entity_type.value

    def set_id(self, entity_id: int) -> None:
        row = self.db.get(self.model, entity_id)
        if row is None:
            raise ResourceNotFoundError(f"No {self.type} with id {entity_id}")
        self.id = row.id
        self.row = row

    def _team_ids(self) -> list:
        return [membership.team_id for membership in self.user.teams]

    def _default_team_id(self):
        team_ids = self._team_ids()
        return team_ids[0] if team_ids else None

    def can(self, rw: str) -> bool:
        row = self.row
        if row is None or row.state == State.DELETED:
            return False
        if self.user.is_admin or row.userid == self.user.id:
            return True
        # write access implies read access
        granted = [row.canwrite] if rw == "write" else [row.canread, row.canwrite]
        for permission in granted:
            if permission == Permission.ORGANIZATION.value:
                return True
            if permission == Permission.TEAM.value and row.team_id is not None and row.team_id in self._team_ids():
                return True
        return False

    def can_or_explode(self, rw: str) -> None:
        if self.row is None:
            raise ImproperActionError("No entity selected")
        if self.row.state == State.DELETED:
            raise IllegalActionError(f"This {self.type} entry was deleted")
        if self.can(rw):
            return
        logger.info("User %s denied %s access to %s %s", self.user.id, rw, self.type, self.id)
        if rw == "write":
            raise PermissionDeniedError("Write access to this entry is required")
        raise IllegalActionError("Read access to this entry is required")

    def touch(self) -> None:
        self.row.modified_at = models.utcnow()
        self.row.lastchangeby = self.user.id
        self.db.flush()

    def links(self, target: EntityType | LinkKind, link_id: int | None = None) -> Links:
        if isinstance(target, LinkKind):
            target = target.target
        return Links(self, target, link_id)

    # reads

    def _category(self, row) -> tuple[str | None, str | None]:
        category_id = getattr(row, "category", None)
        if category_id is None:
            return None, None
        category_model = models.ItemsType if self.entity_type is EntityType.ITEMS else models.ExperimentsCategory
        category = self.db.get(category_model, category_id)
        if category is None:
            return None, None
        return category.title, category.color

    def read_one(self) -> dict[str, Any]:
        self.can_or_explode("read")
        row = self.row
        owner = self.db.get(models.User, row.userid)
        data: dict[str, Any] = {
            "id": row.id,
            "type": self.type,
            "title": row.title,
            "body": row.body,
            "metadata": row.meta,
            "state": row.state,
            "userid": str(row.userid),
            "fullname": owner.full_name if owner else None,
            "team": str(row.team_id) if row.team_id else None,
            "canread": row.canread,
            "canwrite": row.canwrite,
            "created_at": row.created_at,
            "modified_at": row.modified_at,
            "lastchangeby": str(row.lastchangeby) if row.lastchangeby else None,
        }
        if self.entity_type in _DATED:
            status = self.db.get(models.Status, row.status) if row.status else None
            data.update(
                date=row.date,
                elabid=row.elabid,
                rating=row.rating,
                status=row.status,
                status_title=status.title if status else None,
                status_color=status.color if status else None,
            )
        if self.entity_type is EntityType.ITEMS_TYPES:
            data["color"] = row.color
        if hasattr(row, "is_bookable"):
            data["is_bookable"] = row.is_bookable
        if hasattr(row, "category"):
            category_title, category_color = self._category(row)
            data.update(category=row.category, category_title=category_title, category_color=category_color)
        data["tags"] = Tags(self).read_all()
        data["steps"] = Steps(self).read_all()
        data["experiments_links"] = self.links(EntityType.EXPERIMENTS).read_all()
        data["items_links"] = self.links(EntityType.ITEMS).read_all()
        data["comments"] = Comments(self).read_all()
        data["uploads"] = Uploads(self).read_all()
        return data

    def _readable_filter(self):
        model = self.model
        organization = Permission.ORGANIZATION.value
        team = Permission.TEAM.value
        return sa.or_(
            model.userid == self.user.id,
            model.canread == organization,
            model.canwrite == organization,
            sa.and_(
                sa.or_(model.canread == team, model.canwrite == team),
                model.team_id.in_(self._team_ids()),
            ),
        )

    def read_all(
        self,
        *,
        q: str | None = None,
        category: int | None = None,
        states: list[State] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list:
        model = self.model
        query = search.search_entities(self.db, model, self.type, q) if q else self.db.query(model)
        states = states or [State.NORMAL]
        query = query.filter(model.state.in_([int(s) for s in states if s != State.DELETED]))
        if category is not None and hasattr(model, "category"):
            query = query.filter(model.category == category)
        if not self.user.is_admin:
            query = query.filter(self._readable_filter())
        return query.order_by(model.modified_at.desc(), model.id.desc()).offset(offset).limit(limit).all()

    # writes

    def _default_status(self, team_id) -> int | None:
        status = (
            self.db.query(models.Status)
            .filter(
                models.Status.entity_type == self.type,
                models.Status.is_default.is_(True),
                sa.or_(models.Status.team_id == team_id, models.Status.team_id.is_(None)),
            )
            .order_by(models.Status.team_id.is_(None))
            .first()
        )
        return status.id if status else None

    def _blueprint(self, template_id: int | None, category_id: int | None) -> Entity | None:
        """Return the readable entity a new entry is seeded from, if any."""
        if self.entity_type is EntityType.EXPERIMENTS and template_id is not None:
            blueprint = Entity(self.db, self.user, EntityType.TEMPLATES, template_id)
        elif self.entity_type is EntityType.ITEMS and category_id is not None:
            blueprint = Entity(self.db, self.user, EntityType.ITEMS_TYPES, category_id)
        else:
            return None
        blueprint.can_or_explode("read")
        return blueprint

    def _copy_children(self, source: Entity, dest_id: int, from_template: bool) -> None:
        """Copy tags, steps and both link sets of ``source`` onto ``dest_id``."""
        Tags(source).copy_to(self.type, dest_id)
        Steps(source).copy_to(self.type, dest_id)
        for target in (EntityType.EXPERIMENTS, EntityType.ITEMS):
            self.links(target).duplicate(source.id, dest_id, from_template=from_template)

    def _bind(self, row) -> None:
        self.id = row.id
        self.row = row

    def create(
        self,
        *,
        template_id: int | None = None,
        category_id: int | None = None,
        title: str | None = None,
        tags: list[str] | None = None,
    ) -> int:
        tags = [Tags.clean(tag) for tag in tags or []]
        team_id = self._default_team_id()
        blueprint = self._blueprint(template_id, category_id)
        row = self.model(userid=self.user.id, team_id=team_id, title=title or "Untitled", body="")
        if blueprint is not None:
            source = blueprint.row
            row.title = title or source.title
            row.body = source.body
            row.meta = source.meta
            row.canread = source.canread
            row.canwrite = source.canwrite
            if self.entity_type is EntityType.EXPERIMENTS:
                row.category = source.category
            else:
                row.category = source.id
                row.is_bookable = source.is_bookable
        elif category_id is not None and hasattr(row, "category"):
            self._check_category(category_id)
            row.category = category_id
        if self.entity_type in _DATED:
            row.date = date.today()
            row.elabid = generate_elabid(row.date)
            row.status = self._default_status(team_id)
        try:
            self.db.add(row)
            self.db.flush()
            self._bind(row)
            if blueprint is not None:
                self._copy_children(blueprint, row.id, from_template=True)
            for tag in tags:
                Tags(self).attach(tag)
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.id = self.row = None
            raise
        self.db.refresh(row)
        audit.log_action(self.db, self.user.id, "create", self.type, row.id, {"template": template_id})
        search.index_entity(self.type, row)
        return row.id

    def duplicate(self) -> int:
        self.can_or_explode("read")
        source = self.row
        row = self.model(
            userid=self.user.id,
            team_id=self._default_team_id(),
            title=f"{source.title} I",
            body=source.body,
            meta=source.meta,
            canread=source.canread,
            canwrite=source.canwrite,
        )
        for column in ("category", "status", "is_bookable", "color"):
            if hasattr(source, column):
                setattr(row, column, getattr(source, column))
        if self.entity_type in _DATED:
            row.date = date.today()
            row.elabid = generate_elabid(row.date)
        self.db.add(row)
        self.db.flush()
        self._copy_children(self, row.id, from_template=False)
        self.db.commit()
        audit.log_action(self.db, self.user.id, "duplicate", self.type, row.id, {"source": source.id})
        search.index_entity(self.type, row)
        return row.id

    def _check_category(self, category_id: int) -> None:
        if self.entity_type is EntityType.ITEMS:
            category = self.db.get(models.ItemsType, category_id)
            if category is None or category.state == State.DELETED:
                raise ImproperActionError("Unknown items type")
        elif self.db.get(models.ExperimentsCategory, category_id) is None:
            raise ImproperActionError("Unknown experiments category")

    def _check_status(self, status_id: int) -> None:
        status = self.db.get(models.Status, status_id)
        if status is None or status.entity_type != self.type:
            raise ImproperActionError(f"Unknown status for {self.type}")

    def _apply_update(self, params: dict[str, Any]) -> None:
        allowed = _UPDATABLE_FIELDS[self.entity_type]
        unknown = set(params) - allowed
        if unknown:
            raise ImproperActionError(f"Cannot update {', '.join(sorted(unknown))} on {self.type}")
        row = self.row
        for key, value in params.items():
            if key in ("canread", "canwrite"):
                try:
                    value = Permission(value).value
                except ValueError:
                    raise ImproperActionError(f"Invalid permission value: {value}")
            elif key == "metadata":
                if value is not None and not isinstance(value, str):
                    value = json.dumps(value)
                row.meta = value
                continue
            elif key == "category" and value is not None:
                self._check_category(value)
            elif key == "status" and value is not None:
                self._check_status(value)
            elif key == "date" and value is None:
                raise ImproperActionError("Date cannot be empty")
            elif key == "rating" and value is not None and not 0 <= int(value) <= 5:
                raise ImproperActionError("Rating must be between 0 and 5")
            elif key == "title" and not (value or "").strip():
                raise ImproperActionError("Title cannot be empty")
            setattr(row, key, value)

    def patch(self, action: Action, params: dict[str, Any]) -> dict[str, Any]:
        self.can_or_explode("write")
        if action is Action.UPDATE:
            self._apply_update(params)
        elif action is Action.ARCHIVE:
            if self.row.state != State.NORMAL:
                raise ImproperActionError("Only entries in normal state can be archived")
            self.row.state = int(State.ARCHIVED)
        else:
            raise ImproperActionError(f"Invalid action for {self.type} patch.")
        self.touch()
        self.db.commit()
        search.index_entity(self.type, self.row)
        return self.read_one()

    def destroy(self) -> bool:
        self.can_or_explode("write")
        self.row.state = int(State.DELETED)
        self.touch()
        self.db.commit()
        audit.log_action(self.db, self.user.id, "destroy", self.type, self.id)
        search.delete_entity(self.type, self.id)
        return True
