"""Links between notebook entities.

A link is an ``(item_id, link_id)`` row in a join table chosen by the kind of
the owning entity and the kind of the target. The table names for each pair
live in a :class:`LinkRelation` record, so a single :class:`Links` manager
serves every combination.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError

from . import models
from .enums import ACTIVE_STATES, Action, EntityType
from .exceptions import ImproperActionError, ResourceNotFoundError

if TYPE_CHECKING:
    from .entities import Entity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkRelation:
    """Tables used by links from one entity kind to one target kind."""

    target: EntityType
    category_table: str
    # links owned by the entity
    table: str
    # links pointing at the entity, None when nothing can link to the owner
    related_table: str | None
    # links of the blueprint the owner is created from
    template_table: str
    # links copied in by an import, always owned by an item
    import_target_table: str


_ITEMS_CATEGORY = "items_types"
_EXPERIMENTS_CATEGORY = "experiments_categories"

RELATIONS: dict[tuple[EntityType, EntityType], LinkRelation] = {
    (EntityType.EXPERIMENTS, EntityType.ITEMS): LinkRelation(
        target=EntityType.ITEMS,
        category_table=_ITEMS_CATEGORY,
        table="experiments_links",
        related_table="items2experiments",
        template_table="experiments_templates_links",
        import_target_table="items_links",
    ),
    (EntityType.EXPERIMENTS, EntityType.EXPERIMENTS): LinkRelation(
        target=EntityType.EXPERIMENTS,
        category_table=_EXPERIMENTS_CATEGORY,
        table="experiments2experiments",
        related_table="experiments2experiments",
        template_table="experiments_templates2experiments",
        import_target_table="items2experiments",
    ),
    (EntityType.ITEMS, EntityType.ITEMS): LinkRelation(
        target=EntityType.ITEMS,
        category_table=_ITEMS_CATEGORY,
        table="items_links",
        related_table="items_links",
        template_table="items_types_links",
        import_target_table="items_links",
    ),
    (EntityType.ITEMS, EntityType.EXPERIMENTS): LinkRelation(
        target=EntityType.EXPERIMENTS,
        category_table=_EXPERIMENTS_CATEGORY,
        table="items2experiments",
        related_table="experiments_links",
        template_table="items_types2experiments",
        import_target_table="items2experiments",
    ),
    (EntityType.TEMPLATES, EntityType.ITEMS): LinkRelation(
        target=EntityType.ITEMS,
        category_table=_ITEMS_CATEGORY,
        table="experiments_templates_links",
        related_table=None,
        template_table="experiments_templates_links",
        import_target_table="items_links",
    ),
    (EntityType.TEMPLATES, EntityType.EXPERIMENTS): LinkRelation(
        target=EntityType.EXPERIMENTS,
        category_table=_EXPERIMENTS_CATEGORY,
        table="experiments_templates2experiments",
        related_table=None,
        template_table="experiments_templates2experiments",
        import_target_table="items2experiments",
    ),
    (EntityType.ITEMS_TYPES, EntityType.ITEMS): LinkRelation(
        target=EntityType.ITEMS,
        category_table=_ITEMS_CATEGORY,
        table="items_types_links",
        related_table=None,
        template_table="items_types_links",
        import_target_table="items_links",
    ),
    (EntityType.ITEMS_TYPES, EntityType.EXPERIMENTS): LinkRelation(
        target=EntityType.EXPERIMENTS,
        category_table=_EXPERIMENTS_CATEGORY,
        table="items_types2experiments",
        related_table=None,
        template_table="items_types2experiments",
        import_target_table="items2experiments",
    ),
}


def resolve_relation(owner_type: EntityType, target_type: EntityType) -> LinkRelation:
    try:
        return RELATIONS[(EntityType(owner_type), EntityType(target_type))]
    except (KeyError, ValueError):
        raise ImproperActionError(f"No links from {owner_type} to {target_type}")


def _table(name: str) -> sa.Table:
    return models.Base.metadata.tables[name]


class Links:
    """Manage the links of one entity towards one kind of target."""

    def __init__(self, entity: Entity, target_type: EntityType, link_id: int | None = None):
        self.entity = entity
        self.db = entity.db
        self.relation = resolve_relation(entity.entity_type, target_type)
        # id of the target entity (link_id column)
        self.id = link_id

    @property
    def table(self) -> sa.Table:
        return _table(self.relation.table)

    def _target_columns(self, target: sa.Table, category: sa.Table) -> list[Any]:
        columns = [
            target.c.title,
            category.c.title.label("category_title"),
            category.c.color.label("category_color"),
        ]
        if self.relation.target is EntityType.ITEMS:
            columns.append(target.c.is_bookable)
        columns.append(target.c.state.label("link_state"))
        return columns

    def _linked_query(self) -> sa.Select:
        link = self.table
        target = _table(self.relation.target.value)
        category = _table(self.relation.category_table)
        return (
            sa.select(
                target.c.id.label("itemid"),
                target.c.elabid,
                *self._target_columns(target, category),
            )
            .select_from(
                link.outerjoin(target, link.c.link_id == target.c.id).outerjoin(
                    category, target.c.category == category.c.id
                )
            )
            .where(
                link.c.item_id == self.entity.id,
                target.c.state.in_([int(s) for s in ACTIVE_STATES]),
            )
            .order_by(category.c.title.asc(), target.c.date.asc(), target.c.title.asc())
        )

    def read_all(self) -> list[dict[str, Any]]:
        return [dict(row) for row in self.db.execute(self._linked_query()).mappings()]

    def read_one(self) -> list[dict[str, Any]]:
        if self.id is None:
            return self.read_all()
        stmt = self._linked_query().where(self.table.c.link_id == self.id)
        return [dict(row) for row in self.db.execute(stmt).mappings()]

    def read_related(self) -> list[dict[str, Any]]:
        """Entities of the target kind that link to the owning entity."""
        if self.relation.related_table is None:
            return []
        entity_links = _table(self.relation.related_table)
        source = _table(self.relation.target.value)
        category = _table(self.relation.category_table)
        stmt = (
            sa.select(source.c.id.label("entityid"), *self._target_columns(source, category))
            .select_from(
                entity_links.outerjoin(source, entity_links.c.item_id == source.c.id).outerjoin(
                    category, source.c.category == category.c.id
                )
            )
            .where(
                entity_links.c.link_id == self.entity.id,
                source.c.state.in_([int(s) for s in ACTIVE_STATES]),
            )
            .order_by(category.c.title.asc(), source.c.title.asc())
        )
        return [dict(row) for row in self.db.execute(stmt).mappings()]

    def duplicate(self, source_id: int, dest_id: int, from_template: bool = False) -> int:
        """Copy every link owned by ``source_id`` onto ``dest_id``."""
        source = _table(self.relation.template_table if from_template else self.relation.table)
        stmt = sa.insert(self.table).from_select(
            ["item_id", "link_id"],
            sa.select(sa.literal(dest_id, sa.Integer), source.c.link_id).where(source.c.item_id == source_id),
        )
        result = self.db.execute(stmt)
        return result.rowcount or 0

    def post_action(self, action: Action, body: dict[str, Any] | None = None) -> int:
        if action is Action.CREATE:
            return self.create()
        if action is Action.DUPLICATE:
            return self._import()
        raise ImproperActionError("Invalid action for links create.")

    def destroy(self) -> bool:
        self.entity.can_or_explode("write")
        self.entity.touch()
        link = self.table
        result = self.db.execute(
            sa.delete(link).where(link.c.link_id == self.id, link.c.item_id == self.entity.id)
        )
        self.db.commit()
        return bool(result.rowcount)

    def _is_self_link(self, target_id: int | None) -> bool:
        return target_id == self.entity.id and self.entity.entity_type == self.relation.target

    def _exists(self) -> bool:
        link = self.table
        stmt = sa.select(link.c.link_id).where(link.c.item_id == self.entity.id, link.c.link_id == self.id)
        return self.db.execute(stmt).first() is not None

    def create(self) -> int:
        """Link the owning entity to the configured target.

        Creating a link that already exists is a success, not an error.
        A link from an entity to itself is refused and 0 is returned.
        """
        self.entity.can_or_explode("write")
        if self.id is None:
            raise ImproperActionError("A target id is required to create a link")
        if self._is_self_link(self.id):
            return 0
        target = _table(self.relation.target.value)
        if self.db.execute(sa.select(target.c.id).where(target.c.id == self.id)).first() is None:
            raise ResourceNotFoundError(f"No {self.relation.target.value} with id {self.id}")
        self.entity.touch()
        if not self._exists():
            try:
                with self.db.begin_nested():
                    self.db.execute(sa.insert(self.table).values(item_id=self.entity.id, link_id=self.id))
            except IntegrityError:
                # a concurrent writer may have inserted the same pair first
                if not self._exists():
                    raise
                logger.debug("Link %s -> %s already present", self.entity.id, self.id)
        self.db.commit()
        return self.id

    def _import(self) -> int:
        """Copy the links of the target item into the owning entity."""
        self.entity.can_or_explode("write")
        link = self.table
        source = _table(self.relation.import_target_table)
        already_linked = sa.select(link.c.link_id).where(link.c.item_id == self.entity.id)
        select = sa.select(sa.literal(self.entity.id, sa.Integer), source.c.link_id).where(
            source.c.item_id == self.id,
            source.c.link_id.not_in(already_linked),
        )
        if self.entity.entity_type == self.relation.target:
            select = select.where(source.c.link_id != self.entity.id)
        result = self.db.execute(sa.insert(link).from_select(["item_id", "link_id"], select))
        self.entity.touch()
        self.db.commit()
        return result.rowcount or 0
