"""Profile statistics consistency.

The ``enrolled``, ``completed`` and ``uploads`` counters on a profile are a
cache of three counts:

- ``enrolled``: library entries owned by the user.
- ``completed``: library entries owned by the user with ``completed`` set.
- ``uploads``: courses uploaded by the user.

Counters are never adjusted incrementally. Whenever a course or library entry
row is inserted, updated or deleted, the counters of every user owning the
old or new row image are recomputed from scratch inside the same
transaction, right after the flush that wrote the row. A failing recompute
fails the flush, so the caller's rollback discards the mutation as well.

Hooks are registered on :class:`sqlalchemy.orm.Session` itself and therefore
apply to every session in the process. Unit-of-work flushes are tracked by
the flush hooks. Bulk UPDATE and DELETE statements run through
``Session.execute`` (including ``Query.update``/``Query.delete``) are tracked
by the ``do_orm_execute`` hook, which reads the owners of the matched rows
before the statement and again after it. Bulk INSERTs are tracked when the
rows are passed as execute parameters. Statements executed on a bare
Connection are outside the Session and are not seen.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set, Union

from sqlalchemy import event, func, inspect, select, update
from sqlalchemy.engine import Connection
from sqlalchemy.orm import Session

from models.course import CourseModel
from models.enrollment import EnrollmentModel
from models.profile import ProfileModel

logger = logging.getLogger(__name__)

STATS_FIELDS = ("enrolled", "completed", "uploads")

# Row type -> column naming the user whose counters depend on the row
OWNER_COLUMNS: Dict[type, str] = {
    EnrollmentModel: "user_id",
    CourseModel: "uploader_id",
}

_PENDING_KEY = "stats_pending_user_ids"

# Table -> mapped class, for Core statements run through a Session
_MODELS_BY_TABLE = {model.__table__: model for model in OWNER_COLUMNS}

_profiles = ProfileModel.__table__
_enrollments = EnrollmentModel.__table__
_courses = CourseModel.__table__


@dataclass
class StatsDrift:
    """A profile whose stored counters differ from the live counts."""

    user_id: str
    stored: Dict[str, int]
    actual: Dict[str, int]


def _enrolled_count(user_id):
    return (
        select(func.count())
        .select_from(_enrollments)
        .where(_enrollments.c.user_id == user_id)
        .scalar_subquery()
    )


def _completed_count(user_id):
    return (
        select(func.count())
        .select_from(_enrollments)
        .where(_enrollments.c.user_id == user_id)
        .where(_enrollments.c.completed.is_(True))
        .scalar_subquery()
    )


def _uploads_count(user_id):
    return (
        select(func.count())
        .select_from(_courses)
        .where(_courses.c.uploader_id == user_id)
        .scalar_subquery()
    )


def recompute_stats(bind: Union[Connection, Session], user_id: str) -> int:
    """Set a profile's counters to the live counts of its defining rows.

    Runs as a single UPDATE, so the three counters always change together.
    ``updated_at`` is left untouched; counters are not profile edits.

    Args:
        bind: Connection or Session of the enclosing transaction.
        user_id: User whose profile should be refreshed.

    Returns:
        Number of profile rows updated. 0 means the user has no profile,
        which is not an error.
    """
    stmt = (
        update(_profiles)
        .where(_profiles.c.user_id == user_id)
        .values(
            enrolled=_enrolled_count(user_id),
            completed=_completed_count(user_id),
            uploads=_uploads_count(user_id),
            updated_at=_profiles.c.updated_at,
        )
    )
    result = bind.execute(stmt)
    if result.rowcount == 0:
        logger.debug("No profile for user %s, stats recompute skipped", user_id)
    else:
        logger.debug("Recomputed stats for user %s", user_id)
    return result.rowcount


def live_counts(bind: Union[Connection, Session], user_id: str) -> Dict[str, int]:
    """Count the defining rows of a user's counters without touching the profile."""
    row = bind.execute(
        select(
            _enrolled_count(user_id).label("enrolled"),
            _completed_count(user_id).label("completed"),
            _uploads_count(user_id).label("uploads"),
        )
    ).one()
    return {field: int(getattr(row, field)) for field in STATS_FIELDS}


def check_stats(
    session: Session, user_ids: Optional[Iterable[str]] = None
) -> List[StatsDrift]:
    """Compare stored counters against live counts.

    Args:
        session: Database session.
        user_ids: Restrict the check to these users. Defaults to all profiles.

    Returns:
        One StatsDrift per profile whose counters are out of date.
    """
    query = select(
        _profiles.c.user_id,
        _profiles.c.enrolled,
        _profiles.c.completed,
        _profiles.c.uploads,
    )
    if user_ids is not None:
        query = query.where(_profiles.c.user_id.in_(list(user_ids)))

    drifts = []
    for row in session.execute(query).all():
        stored = {field: getattr(row, field) for field in STATS_FIELDS}
        actual = live_counts(session, row.user_id)
        if stored != actual:
            drifts.append(StatsDrift(user_id=row.user_id, stored=stored, actual=actual))
    return drifts


def recompute_all(session: Session) -> int:
    """Recompute the counters of every profile. Caller commits.

    Returns:
        Number of profiles recomputed.
    """
    user_ids = session.execute(select(_profiles.c.user_id)).scalars().all()
    for user_id in user_ids:
        recompute_stats(session, user_id)
    _expire_profiles(session, set(user_ids))
    logger.info("Recomputed stats for %d profiles", len(user_ids))
    return len(user_ids)


def _owners(session: Session, obj, include_previous: bool) -> Set[str]:
    """Users whose counters depend on ``obj``, old and new row image."""
    column = OWNER_COLUMNS.get(type(obj))
    if column is None:
        return set()
    owners = {getattr(obj, column)}
    if include_previous:
        # user reassignment: the previous owner loses a row
        state = inspect(obj)
        history = state.attrs[column].history
        owners.update(history.deleted)
        if history.added and not history.deleted and state.has_identity:
            # old value was never loaded; the row still holds it
            table = type(obj).__table__
            previous = session.execute(
                select(table.c[column]).where(table.c.id == state.identity[0])
            ).scalar()
            owners.add(previous)
    owners.discard(None)
    return owners


def _expire_profiles(session: Session, user_ids: Set[str]) -> None:
    for obj in list(session.identity_map.values()):
        if isinstance(obj, ProfileModel) and inspect(obj).dict.get("user_id") in user_ids:
            session.expire(obj, list(STATS_FIELDS))


@event.listens_for(Session, "before_flush")
def _collect_affected_users(session, flush_context, instances) -> None:
    # Attributes are read before the flush so deleted rows can still be loaded.
    pending = session.info.setdefault(_PENDING_KEY, set())
    for obj in session.new:
        pending.update(_owners(session, obj, include_previous=False))
    for obj in session.dirty:
        pending.update(_owners(session, obj, include_previous=True))
    for obj in session.deleted:
        pending.update(_owners(session, obj, include_previous=True))


@event.listens_for(Session, "after_flush_postexec")
def _recompute_affected_users(session, flush_context) -> None:
    user_ids = session.info.pop(_PENDING_KEY, set())
    if not user_ids:
        return
    connection = session.connection()
    for user_id in sorted(user_ids):
        recompute_stats(connection, user_id)
    _expire_profiles(session, user_ids)


@event.listens_for(Session, "after_soft_rollback")
def _discard_pending(session, previous_transaction) -> None:
    session.info.pop(_PENDING_KEY, None)


def _bulk_target(statement) -> Optional[type]:
    description = statement.entity_description
    model = description.get("entity")
    if model in OWNER_COLUMNS:
        return model
    return _MODELS_BY_TABLE.get(description.get("table"))


def _inserted_owners(parameters, column: str) -> Set[str]:
    if isinstance(parameters, dict):
        parameters = [parameters]
    owners = set()
    for row in parameters or ():
        owners.add(row.get(column))
    return owners


@event.listens_for(Session, "do_orm_execute")
def _recompute_after_bulk_write(orm_execute_state):
    if not (
        orm_execute_state.is_update
        or orm_execute_state.is_delete
        or orm_execute_state.is_insert
    ):
        return None
    statement = orm_execute_state.statement
    model = _bulk_target(statement)
    if model is None:
        return None

    session = orm_execute_state.session
    table = model.__table__
    column = OWNER_COLUMNS[model]
    owner = table.c[column]

    if orm_execute_state.is_insert:
        result = orm_execute_state.invoke_statement()
        user_ids = _inserted_owners(orm_execute_state.parameters, column)
        if not user_ids or None in user_ids:
            logger.warning(
                "Bulk insert into %s without %s parameters; stats not recomputed",
                table.name,
                column,
            )
    else:
        # matched rows and their owners, before the statement changes them
        matched = select(table.c.id, owner)
        if statement.whereclause is not None:
            matched = matched.where(statement.whereclause)
        rows = session.execute(matched).all()

        result = orm_execute_state.invoke_statement()

        user_ids = {row[1] for row in rows}
        row_ids = [row.id for row in rows]
        if orm_execute_state.is_update and row_ids:
            # reassigned rows count for their new owner
            user_ids.update(
                session.execute(
                    select(owner).where(table.c.id.in_(row_ids))
                ).scalars()
            )

    user_ids.discard(None)
    if user_ids:
        connection = session.connection()
        for user_id in sorted(user_ids):
            recompute_stats(connection, user_id)
        _expire_profiles(session, user_ids)
        logger.debug(
            "Bulk write on %s recomputed stats for %d users",
            table.name,
            len(user_ids),
        )
    return result
