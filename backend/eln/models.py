import uuid
import sqlalchemy as sa
from sqlalchemy import (
    Column,
    String,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    JSON,
    Integer,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declared_attr, relationship
from datetime import datetime, timezone

from .database import Base
from .enums import State


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String, unique=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    full_name = Column(String)
    orcid_id = Column(String)
    is_admin = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)

    teams = relationship("TeamMember", back_populates="user")


class Team(Base):
    __tablename__ = "teams"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"))
    created_at = Column(DateTime, default=utcnow)

    members = relationship("TeamMember", back_populates="team")


class TeamMember(Base):
    __tablename__ = "team_members"
    team_id = Column(UUID(as_uuid=True), ForeignKey("teams.id"), primary_key=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), primary_key=True)
    role = Column(String, default="member")

    user = relationship("User", back_populates="teams")
    team = relationship("Team", back_populates="members")


class ExperimentsCategory(Base):
    __tablename__ = "experiments_categories"
    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(UUID(as_uuid=True), ForeignKey("teams.id"), nullable=True)
    title = Column(String, nullable=False)
    color = Column(String, default="29aeb9")
    is_default = Column(Boolean, default=False)


class Status(Base):
    __tablename__ = "statuses"
    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(UUID(as_uuid=True), ForeignKey("teams.id"), nullable=True)
    # experiments or items
    entity_type = Column(String, nullable=False, default="experiments")
    title = Column(String, nullable=False)
    color = Column(String, default="bdbdbd")
    is_default = Column(Boolean, default=False)


class EntityMixin:
    """Columns shared by every notebook entity table."""

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String, nullable=False, default="Untitled")
    body = Column(Text, default="")
    # raw JSON text, decoded only on export
    meta = Column("metadata", Text, nullable=True)
    canread = Column(String, nullable=False, default="team")
    canwrite = Column(String, nullable=False, default="user")
    state = Column(Integer, nullable=False, default=int(State.NORMAL))
    created_at = Column(DateTime, default=utcnow)
    modified_at = Column(DateTime, default=utcnow)

    @declared_attr
    def userid(cls):
        return Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)

    @declared_attr
    def team_id(cls):
        return Column(UUID(as_uuid=True), ForeignKey("teams.id"), nullable=True)

    @declared_attr
    def lastchangeby(cls):
        return Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)


class ItemsType(EntityMixin, Base):
    """Category of database items; its body and links seed new items."""

    __tablename__ = "items_types"
    color = Column(String, default="29aeb9")
    is_bookable = Column(Boolean, default=False)


class ExperimentTemplate(EntityMixin, Base):
    __tablename__ = "experiments_templates"
    category = Column(Integer, ForeignKey("experiments_categories.id", ondelete="SET NULL"), nullable=True)


class Experiment(EntityMixin, Base):
    __tablename__ = "experiments"
    date = Column(Date, nullable=False)
    elabid = Column(String, unique=True, nullable=False)
    rating = Column(Integer, default=0)
    category = Column(Integer, ForeignKey("experiments_categories.id", ondelete="SET NULL"), nullable=True)
    status = Column(Integer, ForeignKey("statuses.id", ondelete="SET NULL"), nullable=True)


class Item(EntityMixin, Base):
    __tablename__ = "items"
    date = Column(Date, nullable=False)
    elabid = Column(String, unique=True, nullable=False)
    rating = Column(Integer, default=0)
    category = Column(Integer, ForeignKey("items_types.id", ondelete="SET NULL"), nullable=True)
    status = Column(Integer, ForeignKey("statuses.id", ondelete="SET NULL"), nullable=True)
    is_bookable = Column(Boolean, default=False)


def _link_table(name: str, owner: str, target: str) -> sa.Table:
    return sa.Table(
        name,
        Base.metadata,
        Column("item_id", Integer, ForeignKey(f"{owner}.id", ondelete="CASCADE"), primary_key=True),
        Column("link_id", Integer, ForeignKey(f"{target}.id", ondelete="CASCADE"), primary_key=True),
    )


experiments_links = _link_table("experiments_links", "experiments", "items")
experiments2experiments = _link_table("experiments2experiments", "experiments", "experiments")
items_links = _link_table("items_links", "items", "items")
items2experiments = _link_table("items2experiments", "items", "experiments")
experiments_templates_links = _link_table("experiments_templates_links", "experiments_templates", "items")
experiments_templates2experiments = _link_table(
    "experiments_templates2experiments", "experiments_templates", "experiments"
)
items_types_links = _link_table("items_types_links", "items_types", "items")
items_types2experiments = _link_table("items_types2experiments", "items_types", "experiments")


class Tag(Base):
    __tablename__ = "tags"
    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(UUID(as_uuid=True), ForeignKey("teams.id"), nullable=True)
    tag = Column(String, nullable=False)

    __table_args__ = (sa.UniqueConstraint("team_id", "tag", name="uq_tags_team_tag"),)


class TagLink(Base):
    __tablename__ = "tags2entity"
    tag_id = Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)
    item_id = Column(Integer, primary_key=True)
    item_type = Column(String, primary_key=True)

    tag = relationship("Tag")


class Step(Base):
    __tablename__ = "steps"
    id = Column(Integer, primary_key=True, autoincrement=True)
    item_type = Column(String, nullable=False, index=True)
    item_id = Column(Integer, nullable=False, index=True)
    body = Column(Text, nullable=False)
    ordering = Column(Integer, default=0)
    finished = Column(Boolean, default=False)
    finished_time = Column(DateTime, nullable=True)
    deadline = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)


class Comment(Base):
    __tablename__ = "comments"
    id = Column(Integer, primary_key=True, autoincrement=True)
    item_type = Column(String, nullable=False, index=True)
    item_id = Column(Integer, nullable=False, index=True)
    userid = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    comment = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    modified_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    author = relationship("User")


class Upload(Base):
    __tablename__ = "uploads"
    id = Column(Integer, primary_key=True, autoincrement=True)
    item_type = Column(String, nullable=False, index=True)
    item_id = Column(Integer, nullable=False, index=True)
    real_name = Column(String, nullable=False)
    long_name = Column(String, nullable=False)
    comment = Column(String, default="")
    content_type = Column(String, default="application/octet-stream")
    filesize = Column(Integer, default=0)
    hash = Column(String)
    hash_algorithm = Column(String, default="sha256")
    userid = Column(UUID(as_uuid=True), ForeignKey("users.id"))
    created_at = Column(DateTime, default=utcnow)


class AuditLog(Base):
    __tablename__ = "audit_logs"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"))
    action = Column(String, nullable=False)
    target_type = Column(String)
    target_id = Column(String)
    details = Column(JSON, default={})
    created_at = Column(DateTime, default=utcnow)
