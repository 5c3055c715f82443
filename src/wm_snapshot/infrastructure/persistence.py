"""SnapshotRepository: one generic summation routine for every SourceSpec.

Each statement runs inside a SAVEPOINT: on PostgreSQL a failed statement
aborts the whole transaction, and one missing table must not take the
other components (or the rest of the request) down with it.

Relation and column names are interpolated from the fixed SourceSpec
catalog only. Subject ids and dates are always bound parameters.
"""

from datetime import datetime
from decimal import Decimal
from functools import lru_cache

from sqlalchemy import TextClause, bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wm_common.money import to_decimal
from src.wm_snapshot.domain.models import SourceSpec, TypeGroup
from src.wm_snapshot.domain.relations import OPTIONAL_RELATIONS


def _where(spec: SourceSpec, by_subject: bool, since: bool) -> str:
    clauses: list[str] = []
    if by_subject:
        clauses.append(f"{spec.owner_column} IN :subject_ids")
    if spec.predicate:
        clauses.append(spec.predicate)
    if since:
        clauses.append(f"{spec.date_column} >= :since")
    return f"WHERE {' AND '.join(clauses)}" if clauses else ""


@lru_cache(maxsize=64)
def _sum_by_subject_sql(spec: SourceSpec, by_subject: bool, since: bool) -> TextClause:
    stmt = text(f"""
        SELECT {spec.owner_column} AS subject_id,
               COALESCE(SUM({spec.value_column}), 0) AS total
        FROM {spec.relation}
        {_where(spec, by_subject=by_subject, since=since)}
        GROUP BY {spec.owner_column}
    """)
    if by_subject:
        stmt = stmt.bindparams(bindparam("subject_ids", expanding=True))
    return stmt


@lru_cache(maxsize=64)
def _group_by_type_sql(spec: SourceSpec, by_subject: bool) -> TextClause:
    stmt = text(f"""
        SELECT {spec.type_column} AS type,
               COUNT(*) AS count,
               COALESCE(SUM({spec.value_column}), 0) AS total
        FROM {spec.relation}
        {_where(spec, by_subject=by_subject, since=False)}
        GROUP BY {spec.type_column}
    """)
    if by_subject:
        stmt = stmt.bindparams(bindparam("subject_ids", expanding=True))
    return stmt


@lru_cache(maxsize=32)
def _exists_sql(relation: str) -> TextClause:
    if relation not in OPTIONAL_RELATIONS:
        raise ValueError(f"Unknown relation: {relation}")
    return text(f"SELECT 1 FROM {relation} LIMIT 1")


class SnapshotRepository:
    """Concrete repository: read-only, every statement isolated by a savepoint."""

    async def relation_exists(self, db: AsyncSession, relation: str) -> bool:
        async with db.begin_nested():
            await db.execute(_exists_sql(relation))
        return True

    async def sum_by_subject(
        self,
        db: AsyncSession,
        spec: SourceSpec,
        subject_ids: list[str] | None,
        since: datetime | None = None,
    ) -> dict[str, Decimal]:
        """Raw sums grouped by owner; subject_ids=None groups every owner."""
        if subject_ids is not None and not subject_ids:
            return {}
        params: dict[str, object] = {}
        if subject_ids is not None:
            params["subject_ids"] = list(subject_ids)
        if since is not None:
            params["since"] = since
        async with db.begin_nested():
            result = await db.execute(
                _sum_by_subject_sql(spec, subject_ids is not None, since is not None), params
            )
            rows = result.fetchall()
        return {str(row.subject_id): to_decimal(row.total) for row in rows}

    async def group_by_type(
        self,
        db: AsyncSession,
        spec: SourceSpec,
        subject_ids: list[str] | None,
    ) -> list[TypeGroup]:
        if spec.type_column is None:
            raise ValueError(f"{spec.relation} has no type column to group by")
        if subject_ids is not None and not subject_ids:
            return []
        params: dict[str, object] = {}
        if subject_ids is not None:
            params["subject_ids"] = list(subject_ids)
        async with db.begin_nested():
            result = await db.execute(
                _group_by_type_sql(spec, subject_ids is not None), params
            )
            rows = result.fetchall()
        return [
            TypeGroup(type=row.type, count=int(row.count), raw_total=to_decimal(row.total))
            for row in rows
        ]
