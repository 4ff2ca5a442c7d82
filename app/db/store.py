"""
Document store: a hierarchical key/value tree kept in the `documents` table.

A record lives at a two-segment path (`students/<id>`, `config/fees`); deeper
segments address values inside the record's JSON. `update()` applies many
paths in one database transaction and compare-and-swaps every record it
touches on its version, so concurrent writers never interleave.
"""

import copy
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from fastapi import Depends
from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import PreconditionFailed, StoreError
from app.core.models import Document
from app.db.session import get_db

logger = logging.getLogger(__name__)


def split_path(path: str) -> List[str]:
    parts = [p for p in str(path).strip("/").split("/") if p]
    if not parts:
        raise ValueError("Empty document path")
    return parts


def _record_path(parts: List[str]) -> Tuple[str, List[str]]:
    return "/".join(parts[:2]), parts[2:]


def read_inner(data: Any, inner: List[str]) -> Any:
    node = data
    for key in inner:
        if not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    return node


def write_inner(data: Any, inner: List[str], value: Any) -> Any:
    """Return a copy of `data` with `value` placed at `inner`; None removes the key."""
    if not inner:
        return copy.deepcopy(value)
    root = copy.deepcopy(data) if isinstance(data, dict) else {}
    node = root
    for key in inner[:-1]:
        child = node.get(key)
        if not isinstance(child, dict):
            if value is None:
                return root
            child = {}
            node[key] = child
        node = child
    if value is None:
        node.pop(inner[-1], None)
    else:
        node[inner[-1]] = copy.deepcopy(value)
    return root


def _group_by_record(paths: Mapping[str, Any]) -> Dict[str, List[Tuple[List[str], Any]]]:
    grouped: Dict[str, List[Tuple[List[str], Any]]] = {}
    for path, value in paths.items():
        parts = split_path(path)
        if len(parts) < 2:
            raise ValueError(f"Path must address a record, not a whole collection: {path!r}")
        record, inner = _record_path(parts)
        grouped.setdefault(record, []).append((inner, value))
    return grouped


def _check_disjoint(paths: Mapping[str, Any]) -> None:
    normalized = ["/".join(split_path(p)) for p in paths]
    seen = set()
    for path in normalized:
        if path in seen:
            raise ValueError(f"Overlapping paths in one update: {path!r} given twice")
        seen.add(path)
    for path in normalized:
        parts = path.split("/")
        for depth in range(1, len(parts)):
            ancestor = "/".join(parts[:depth])
            if ancestor in seen:
                raise ValueError(f"Overlapping paths in one update: {ancestor!r} and {path!r}")


class DocumentStore:
    """Store handle bound to one request's database session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, path: str) -> Any:
        """Point read of a subtree. A one-segment path returns the whole collection as a dict."""
        parts = split_path(path)
        if len(parts) == 1:
            result = await self.session.execute(
                select(Document.path, Document.data).where(Document.collection == parts[0])
            )
            rows = result.all()
            if not rows:
                return None
            return {p.split("/", 1)[1]: data for p, data in rows}
        record, inner = _record_path(parts)
        result = await self.session.execute(select(Document.data).where(Document.path == record))
        data = result.scalar_one_or_none()
        return read_inner(data, inner)

    async def find(self, collection: str, field: str, value: str) -> Dict[str, Any]:
        """Records of `collection` whose top-level string `field` equals `value`.

        Filtered in SQL on the JSON field, so only matching records are loaded.
        """
        result = await self.session.execute(
            select(Document.path, Document.data).where(
                Document.collection == collection,
                Document.data[field].as_string() == value,
            )
        )
        return {
            path.split("/", 1)[1]: data
            for path, data in result.all()
            if isinstance(data, dict) and data.get(field) == value
        }

    async def set(self, path: str, value: Any) -> None:
        """Point write of a subtree."""
        await self.update({path: value})

    async def update(
        self,
        updates: Mapping[str, Any],
        expect: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """
        Apply every (path -> value) pair atomically; a None value deletes the path.

        `expect` maps paths to the values the caller read. If any of them changed,
        PreconditionFailed is raised and nothing is written.
        """
        if not updates:
            return
        _check_disjoint(updates)
        planned = _group_by_record(updates)
        guards = _group_by_record(expect or {})
        records = sorted(set(planned) | set(guards))

        try:
            current = await self._load(records)
            for record, checks in guards.items():
                data, _ = current.get(record, (None, None))
                for inner, expected in checks:
                    if read_inner(data, inner) != expected:
                        logger.info("Precondition failed on %s/%s", record, "/".join(inner))
                        raise PreconditionFailed()

            now = datetime.now(timezone.utc)
            for record in records:
                data, version = current.get(record, (None, None))
                new_data = data
                for inner, value in planned.get(record, []):
                    new_data = write_inner(new_data, inner, value)
                await self._write_record(record, version, new_data, now)
            await self.session.commit()
        except PreconditionFailed:
            await self.session.rollback()
            raise
        except IntegrityError as exc:
            await self.session.rollback()
            raise PreconditionFailed() from exc
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("Document store update failed (%d paths)", len(updates))
            raise StoreError() from exc

    async def _load(self, records: List[str]) -> Dict[str, Tuple[Any, int]]:
        if not records:
            return {}
        result = await self.session.execute(
            select(Document.path, Document.data, Document.version).where(Document.path.in_(records))
        )
        return {path: (data, version) for path, data, version in result.all()}

    async def _write_record(self, record: str, version: Optional[int], data: Any, now: datetime) -> None:
        empty = data is None or data == {}
        if version is None:
            if empty:
                return
            await self.session.execute(
                insert(Document).values(
                    path=record,
                    collection=record.split("/", 1)[0],
                    data=data,
                    version=1,
                    updated_at=now,
                )
            )
            return
        if empty:
            stmt = delete(Document).where(Document.path == record, Document.version == version)
        else:
            stmt = (
                update(Document)
                .where(Document.path == record, Document.version == version)
                .values(data=data, version=version + 1, updated_at=now)
            )
        result = await self.session.execute(stmt, execution_options={"synchronize_session": False})
        if result.rowcount != 1:
            logger.info("Concurrent write detected on %s (version %s)", record, version)
            raise PreconditionFailed()


async def get_store(db: AsyncSession = Depends(get_db)) -> DocumentStore:
    return DocumentStore(db)
