from typing import Any, Iterable

from sqlalchemy import and_, inspect as sa_inspect, select, UniqueConstraint
from sqlalchemy.ext.asyncio import AsyncSession


def find_unknown_model_kwargs(model, kwargs: dict[str, Any]) -> list[str]:
    """
    Return the keys of `kwargs` that are not mapped attributes of `model`.

    `model` is the mapped class (e.g. `Message`), not an instance. Relationship
    names count as known attributes.
    """
    mapper = sa_inspect(model)
    allowed = {attr.key for attr in mapper.attrs}
    return [k for k in kwargs if k not in allowed]


def get_required_columns(model) -> list[str]:
    """
    Columns that are NOT NULL, carry no client/server default and are not
    autoincrement primary keys: the caller has to supply these.
    """
    cols = []
    for col in model.__table__.columns:
        has_default = col.default is not None or col.server_default is not None
        is_auto_pk = col.primary_key and col.autoincrement in (True, "auto")
        if not col.nullable and not has_default and not is_auto_pk:
            cols.append(col.name)
    return cols


def get_unique_column_sets(model) -> list[Iterable[str]]:
    """
    Unique column sets declared on the table:
      - Column(unique=True)
      - UniqueConstraint (multi-column)
      - Index(..., unique=True)
    """
    table = model.__table__
    unique_sets: list[list[str]] = [[col.name] for col in table.columns if col.unique]

    for constraint in table.constraints:
        if isinstance(constraint, UniqueConstraint):
            unique_sets.append([c.name for c in constraint.columns])

    for idx in table.indexes:
        if idx.unique:
            unique_sets.append([c.name for c in idx.columns])

    return unique_sets


async def find_unique_conflicts(db: AsyncSession, model, kwargs: dict[str, Any]) -> set[str]:
    """
    Best-effort pre-insert check: return the column names whose values already
    exist in a row that a new insert would collide with.

    Only unique sets fully covered by `kwargs` are checked; the database
    constraint stays the final authority (races are mapped by db_error_handler).
    """
    conflicts: set[str] = set()

    for cols in get_unique_column_sets(model):
        if not all(c in kwargs for c in cols):
            continue

        conditions = [getattr(model, c) == kwargs[c] for c in cols]
        result = await db.execute(select(model).where(and_(*conditions)).limit(1))
        if result.scalars().first() is not None:
            conflicts.update(cols)

    return conflicts
