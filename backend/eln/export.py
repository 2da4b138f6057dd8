"""Build downloadable exports from one or several entities."""

from __future__ import annotations

import csv
import io
import json
import logging
from datetime import date, datetime
from typing import Any, Iterable, Iterator
from uuid import UUID

from .entities import Entity
from .exceptions import IllegalActionError, ImproperActionError

logger = logging.getLogger(__name__)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class AbstractMake:
    content_type = "application/octet-stream"

    def __init__(self, entity: Entity, ids: Iterable[int]):
        self.entity = entity
        self.ids = [int(i) for i in ids]
        # byte length of the last generated content
        self.content_size = 0

    def get_file_name(self) -> str:
        raise NotImplementedError

    def get_file_content(self) -> str:
        raise NotImplementedError

    def _readable_records(self) -> Iterator[dict[str, Any]]:
        """Yield ``read_one()`` of every id the user may read, in order."""
        for entity_id in self.ids:
            self.entity.set_id(entity_id)
            try:
                yield self.entity.read_one()
            except IllegalActionError as exc:
                logger.info("Skipping %s %s in export: %s", self.entity.type, entity_id, exc.message)
                continue

    def _finish(self, content: str) -> str:
        self.content_size = len(content.encode("utf-8"))
        return content


class MakeJson(AbstractMake):
    """JSON array with one object per readable entity."""

    content_type = "application/json"

    def get_file_name(self) -> str:
        return "export-elabftw.json"

    def get_file_content(self) -> str:
        res = []
        for record in self._readable_records():
            # the metadata column holds JSON text
            if isinstance(record.get("metadata"), str):
                try:
                    record["metadata"] = json.loads(record["metadata"])
                except json.JSONDecodeError:
                    logger.warning("Invalid metadata on %s %s", self.entity.type, record["id"])
                    record["metadata"] = None
            res.append(record)
        return self._finish(json.dumps(res, default=_json_default, ensure_ascii=False))


class MakeCsv(AbstractMake):
    content_type = "text/csv"
    columns = ["id", "date", "title", "category", "status", "state", "elabid"]

    def get_file_name(self) -> str:
        return "export-elabftw.csv"

    def get_file_content(self) -> str:
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(self.columns)
        for record in self._readable_records():
            writer.writerow(
                [
                    record["id"],
                    record["date"].isoformat() if record.get("date") else "",
                    record["title"],
                    record.get("category_title") or "",
                    record.get("status_title") or "",
                    record["state"],
                    record.get("elabid") or "",
                ]
            )
        return self._finish(output.getvalue())


EXPORT_FORMATS = {
    "json": MakeJson,
    "csv": MakeCsv,
}


def make_exporter(fmt: str, entity: Entity, ids: Iterable[int]) -> AbstractMake:
    try:
        maker = EXPORT_FORMATS[fmt]
    except KeyError:
        raise ImproperActionError(f"Unsupported export format: {fmt}")
    return maker(entity, ids)
