"""SQLAlchemy-backed passage catalog implementing the PassageRepository protocol."""

import logging
from typing import Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session as DBSession, sessionmaker

from recite.models import Container, Passage, Version, make_passage_id
from recite.repository import expansion_allowed
from server.db.models import ContainerRow, PassageRow, VersionRow

logger = logging.getLogger("recite.server")


def _to_passage(row: PassageRow) -> Passage:
    return Passage(
        container_code=row.container_code,
        container_name=row.container_name,
        container_order=row.container_order,
        sub_unit=row.sub_unit,
        unit=row.unit,
        text=row.text,
        version_code=row.version_code,
    )


class SqlPassageRepository:
    """
    Passage catalog stored in the versions/containers/passages tables.

    Each call opens and closes its own session from the factory.
    """

    def __init__(self, session_factory: sessionmaker, span_sub_units: bool = False):
        self._factory = session_factory
        self.span_sub_units = span_sub_units

    def lookup_passage(self, container_code, sub_unit, unit, version_code):
        return self.get_passage(make_passage_id(container_code, sub_unit, unit, version_code))

    def get_passage(self, passage_id):
        with self._factory() as db:
            row = db.get(PassageRow, passage_id)
            return _to_passage(row) if row is not None else None

    def expand_range(self, start, end, version_code):
        if not expansion_allowed(start, end, self.span_sub_units):
            return []
        with self._factory() as db:
            q = db.query(PassageRow).filter(PassageRow.version_code == version_code)
            if not self.span_sub_units:
                q = q.filter(
                    PassageRow.container_code == start.container_code,
                    PassageRow.sub_unit == start.sub_unit,
                    PassageRow.unit >= start.unit,
                    PassageRow.unit <= end.unit,
                )
            else:
                q = q.filter(
                    PassageRow.container_order >= start.container_order,
                    PassageRow.container_order <= end.container_order,
                )
            rows = q.order_by(
                PassageRow.container_order, PassageRow.sub_unit, PassageRow.unit,
            ).all()
            passages = [_to_passage(r) for r in rows]
        if self.span_sub_units:
            lo, hi = start.sort_key, end.sort_key
            passages = [p for p in passages if lo <= p.sort_key <= hi]
        return passages

    def list_containers(self, version_code):
        with self._factory() as db:
            rows = (
                db.query(ContainerRow)
                .filter(ContainerRow.version_code == version_code)
                .order_by(ContainerRow.order)
                .all()
            )
            return [Container(code=r.code, name=r.name, order=r.order, sub_units=r.sub_units) for r in rows]

    def list_versions(self):
        with self._factory() as db:
            rows = db.query(VersionRow).order_by(VersionRow.code).all()
            return [Version(code=r.code, name=r.name, language=r.language or "") for r in rows]

    def sub_unit_count(self, container_code, version_code):
        with self._factory() as db:
            n = (
                db.query(func.max(PassageRow.sub_unit))
                .filter(PassageRow.version_code == version_code,
                        PassageRow.container_code == container_code)
                .scalar()
            )
            return n or 0

    def unit_count(self, container_code, sub_unit, version_code):
        with self._factory() as db:
            n = (
                db.query(func.max(PassageRow.unit))
                .filter(PassageRow.version_code == version_code,
                        PassageRow.container_code == container_code,
                        PassageRow.sub_unit == sub_unit)
                .scalar()
            )
            return n or 0

    def search(self, keyword, version_code, limit=50):
        needle = (
            keyword.lower()
            .replace("\\", "\\\\")
            .replace("%", "\\%")
            .replace("_", "\\_")
        )
        with self._factory() as db:
            rows = (
                db.query(PassageRow)
                .filter(PassageRow.version_code == version_code,
                        func.lower(PassageRow.text).like(f"%{needle}%", escape="\\"))
                .order_by(PassageRow.container_order, PassageRow.sub_unit, PassageRow.unit)
                .limit(limit)
                .all()
            )
            return [_to_passage(r) for r in rows]


def import_catalog(
    db: DBSession,
    passages: Iterable[Passage],
    versions: Iterable[Version] = (),
) -> int:
    """
    Upsert versions, containers and passages into the catalog tables.

    Versions referenced by passages but not listed are created with the
    code as their name. Returns the number of passages written.
    """
    listed = {v.code: v for v in versions}
    referenced = set()
    containers: dict = {}
    count = 0
    for p in passages:
        referenced.add(p.version_code)
        ckey = (p.version_code, p.container_code)
        c = containers.get(ckey)
        containers[ckey] = Container(
            code=p.container_code,
            name=p.container_name,
            order=p.container_order,
            sub_units=max(p.sub_unit, c.sub_units) if c else p.sub_unit,
        )
        db.merge(PassageRow(
            passage_id=p.passage_id,
            version_code=p.version_code,
            container_code=p.container_code,
            container_name=p.container_name,
            container_order=p.container_order,
            sub_unit=p.sub_unit,
            unit=p.unit,
            text=p.text,
        ))
        count += 1

    for v in listed.values():
        db.merge(VersionRow(code=v.code, name=v.name, language=v.language))
    for code in referenced - set(listed):
        if db.get(VersionRow, code) is None:
            db.add(VersionRow(code=code, name=code, language=""))

    for (version_code, code), c in containers.items():
        row = (
            db.query(ContainerRow)
            .filter(ContainerRow.version_code == version_code, ContainerRow.code == code)
            .first()
        )
        if row is None:
            db.add(ContainerRow(version_code=version_code, code=code, name=c.name,
                                order=c.order, sub_units=c.sub_units))
        else:
            row.name = c.name
            row.order = c.order
            row.sub_units = max(row.sub_units or 0, c.sub_units)
    db.flush()
    logger.info("Imported %d passage(s) across %d container(s)", count, len(containers))
    return count

