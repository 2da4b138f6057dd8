"""Tags, steps, comments and uploads attached to a notebook entity.

Each helper is bound to an owning entity (anything exposing ``db``, ``user``,
``type``, ``id``, ``row``, ``can_or_explode`` and ``touch``) and keys its rows
by ``(item_type, item_id)``.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any

import sqlalchemy as sa

from . import models, storage
from .enums import Action
from .exceptions import IllegalActionError, ImproperActionError, ResourceNotFoundError

logger = logging.getLogger(__name__)


class _SubResource:
    def __init__(self, entity, sub_id: int | None = None):
        self.entity = entity
        self.db = entity.db
        self.id = sub_id

    def _owned(self, model):
        return self.db.query(model).filter(
            model.item_type == self.entity.type,
            model.item_id == self.entity.id,
        )


class Tags(_SubResource):
    def read_all(self) -> list[dict[str, Any]]:
        rows = (
            self.db.query(models.Tag)
            .join(models.TagLink, models.TagLink.tag_id == models.Tag.id)
            .filter(
                models.TagLink.item_type == self.entity.type,
                models.TagLink.item_id == self.entity.id,
            )
            .order_by(models.Tag.tag)
            .all()
        )
        return [{"id": tag.id, "tag": tag.tag} for tag in rows]

    def _find_or_create(self, text: str) -> models.Tag:
        team_id = self.entity.row.team_id
        tag = (
            self.db.query(models.Tag)
            .filter(models.Tag.team_id == team_id if team_id else models.Tag.team_id.is_(None), models.Tag.tag == text)
            .first()
        )
        if tag is None:
            tag = models.Tag(team_id=team_id, tag=text)
            self.db.add(tag)
            self.db.flush()
        return tag

    @staticmethod
    def clean(text: str) -> str:
        text = (text or "").strip()
        if not text:
            raise ImproperActionError("Tag cannot be empty")
        return text

    def attach(self, text: str) -> int:
        """Reference the tag from the entity without committing."""
        tag = self._find_or_create(self.clean(text))
        key = (tag.id, self.entity.id, self.entity.type)
        if self.db.get(models.TagLink, key) is None:
            self.db.add(models.TagLink(tag_id=tag.id, item_id=self.entity.id, item_type=self.entity.type))
            self.db.flush()
        return tag.id

    def create(self, text: str) -> int:
        self.entity.can_or_explode("write")
        tag_id = self.attach(text)
        self.entity.touch()
        self.db.commit()
        return tag_id

    def copy_to(self, item_type: str, item_id: int) -> None:
        for link in self._owned(models.TagLink).all():
            self.db.add(models.TagLink(tag_id=link.tag_id, item_id=item_id, item_type=item_type))
        self.db.flush()

    def destroy(self) -> bool:
        """Remove the tag from the entity; drop the tag once nothing uses it."""
        self.entity.can_or_explode("write")
        link = self.db.get(models.TagLink, (self.id, self.entity.id, self.entity.type))
        if link is None:
            return False
        self.db.delete(link)
        self.db.flush()
        still_used = self.db.query(models.TagLink).filter(models.TagLink.tag_id == self.id).first()
        if still_used is None:
            self.db.query(models.Tag).filter(models.Tag.id == self.id).delete()
        self.entity.touch()
        self.db.commit()
        return True


class Steps(_SubResource):
    @staticmethod
    def _serialize(step: models.Step) -> dict[str, Any]:
        return {
            "id": step.id,
            "body": step.body,
            "ordering": step.ordering,
            "finished": step.finished,
            "finished_time": step.finished_time,
            "deadline": step.deadline,
        }

    def read_all(self) -> list[dict[str, Any]]:
        steps = self._owned(models.Step).order_by(models.Step.ordering, models.Step.id).all()
        return [self._serialize(step) for step in steps]

    def _get(self) -> models.Step:
        step = self._owned(models.Step).filter(models.Step.id == self.id).first()
        if step is None:
            raise ResourceNotFoundError("Step not found")
        return step

    def create(self, body: str) -> int:
        self.entity.can_or_explode("write")
        body = (body or "").strip()
        if not body:
            raise ImproperActionError("Step body cannot be empty")
        last = self._owned(models.Step).with_entities(sa.func.max(models.Step.ordering)).scalar()
        step = models.Step(
            item_type=self.entity.type,
            item_id=self.entity.id,
            body=body,
            ordering=(last or 0) + 1,
        )
        self.db.add(step)
        self.entity.touch()
        self.db.commit()
        return step.id

    def patch(self, action: Action, params: dict[str, Any]) -> dict[str, Any]:
        self.entity.can_or_explode("write")
        step = self._get()
        if action is Action.FINISH:
            step.finished = not step.finished
            step.finished_time = models.utcnow() if step.finished else None
        elif action is Action.UPDATE:
            if "body" in params:
                if not (params["body"] or "").strip():
                    raise ImproperActionError("Step body cannot be empty")
                step.body = params["body"]
            if "deadline" in params:
                step.deadline = params["deadline"]
        else:
            raise ImproperActionError("Invalid action for steps.")
        self.entity.touch()
        self.db.commit()
        return self._serialize(step)

    def copy_to(self, item_type: str, item_id: int) -> None:
        for step in self._owned(models.Step).order_by(models.Step.ordering).all():
            self.db.add(
                models.Step(item_type=item_type, item_id=item_id, body=step.body, ordering=step.ordering)
            )
        self.db.flush()

    def destroy(self) -> bool:
        self.entity.can_or_explode("write")
        self.db.delete(self._get())
        self.entity.touch()
        self.db.commit()
        return True


class Comments(_SubResource):
    def read_all(self) -> list[dict[str, Any]]:
        rows = (
            self._owned(models.Comment)
            .join(models.User, models.User.id == models.Comment.userid)
            .with_entities(models.Comment, models.User.full_name)
            .order_by(models.Comment.created_at, models.Comment.id)
            .all()
        )
        return [
            {
                "id": comment.id,
                "comment": comment.comment,
                "userid": str(comment.userid),
                "fullname": full_name,
                "created_at": comment.created_at,
                "modified_at": comment.modified_at,
            }
            for comment, full_name in rows
        ]

    def _get_own(self) -> models.Comment:
        comment = self._owned(models.Comment).filter(models.Comment.id == self.id).first()
        if comment is None:
            raise ResourceNotFoundError("Comment not found")
        user = self.entity.user
        if comment.userid != user.id and not user.is_admin:
            raise IllegalActionError("Only the author can change a comment")
        return comment

    def create(self, text: str) -> int:
        self.entity.can_or_explode("read")
        text = (text or "").strip()
        if not text:
            raise ImproperActionError("Comment cannot be empty")
        comment = models.Comment(
            item_type=self.entity.type,
            item_id=self.entity.id,
            userid=self.entity.user.id,
            comment=text,
        )
        self.db.add(comment)
        self.db.commit()
        return comment.id

    def update(self, text: str) -> dict[str, Any]:
        self.entity.can_or_explode("read")
        comment = self._get_own()
        text = (text or "").strip()
        if not text:
            raise ImproperActionError("Comment cannot be empty")
        comment.comment = text
        self.db.commit()
        return next(c for c in self.read_all() if c["id"] == comment.id)

    def destroy(self) -> bool:
        self.entity.can_or_explode("read")
        self.db.delete(self._get_own())
        self.db.commit()
        return True


class Uploads(_SubResource):
    @staticmethod
    def _serialize(upload: models.Upload) -> dict[str, Any]:
        return {
            "id": upload.id,
            "real_name": upload.real_name,
            "comment": upload.comment,
            "content_type": upload.content_type,
            "filesize": upload.filesize,
            "hash": upload.hash,
            "hash_algorithm": upload.hash_algorithm,
            "userid": str(upload.userid) if upload.userid else None,
            "created_at": upload.created_at,
        }

    def read_all(self) -> list[dict[str, Any]]:
        uploads = self._owned(models.Upload).order_by(models.Upload.id).all()
        return [self._serialize(upload) for upload in uploads]

    def read_one(self) -> models.Upload:
        self.entity.can_or_explode("read")
        upload = self._owned(models.Upload).filter(models.Upload.id == self.id).first()
        if upload is None:
            raise ResourceNotFoundError("Upload not found")
        return upload

    def read_binary(self) -> tuple[models.Upload, bytes]:
        upload = self.read_one()
        return upload, storage.load_binary_payload(upload.long_name)

    def create(self, filename: str, data: bytes, content_type: str | None = None, comment: str = "") -> int:
        self.entity.can_or_explode("write")
        if not filename:
            raise ImproperActionError("Uploaded file has no name")
        content_type = content_type or "application/octet-stream"
        storage_path, size = storage.save_binary_payload(
            data,
            filename,
            content_type=content_type,
            namespace=f"{self.entity.type}/{self.entity.id}",
        )
        upload = models.Upload(
            item_type=self.entity.type,
            item_id=self.entity.id,
            real_name=filename,
            long_name=storage_path,
            comment=comment or "",
            content_type=content_type,
            filesize=size,
            hash=hashlib.sha256(data).hexdigest(),
            userid=self.entity.user.id,
        )
        self.db.add(upload)
        self.entity.touch()
        self.db.commit()
        return upload.id

    def destroy(self) -> bool:
        self.entity.can_or_explode("write")
        upload = self.read_one()
        try:
            storage.delete_payload(upload.long_name)
        except FileNotFoundError:
            logger.warning("Stored payload for upload %s already missing", upload.id)
        self.db.delete(upload)
        self.entity.touch()
        self.db.commit()
        return True
