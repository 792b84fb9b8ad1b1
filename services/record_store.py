from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Optional

from flask import current_app, g
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from services.exceptions import StoreError, NotFoundError


@dataclass(frozen=True)
class Range:
    """Inclusive range filter for RecordStore.select."""

    gte: Optional[Any] = None
    lte: Optional[Any] = None


class RecordStore:
    """Keyed-record access on top of the SQLAlchemy session.

    Filters map a column attribute name to a plain value (equality), a list,
    tuple or set (IN membership) or a Range (gte/lte, inclusive).
    Ordering is a list of attribute names; prefix with "-" for descending.
    """

    def __init__(self, session):
        self.session = session

    # =========================================================
    # READS
    # =========================================================
    def query(self, model, filters=None, ordering=None):
        q = self.session.query(model)

        for name, value in (filters or {}).items():
            column = getattr(model, name)
            if isinstance(value, Range):
                if value.gte is not None:
                    q = q.filter(column >= value.gte)
                if value.lte is not None:
                    q = q.filter(column <= value.lte)
            elif isinstance(value, (list, tuple, set, frozenset)):
                q = q.filter(column.in_(list(value)))
            else:
                q = q.filter(column == value)

        for name in ordering or []:
            if name.startswith("-"):
                q = q.order_by(getattr(model, name[1:]).desc())
            else:
                q = q.order_by(getattr(model, name).asc())

        return q

    def select(self, model, filters=None, ordering=None):
        # an empty IN list can never match; skip the round trip
        for value in (filters or {}).values():
            if isinstance(value, (list, tuple, set, frozenset)) and not value:
                return []

        try:
            return self.query(model, filters, ordering).all()
        except SQLAlchemyError as exc:
            current_app.logger.exception("Select on %s failed", model.__tablename__)
            raise StoreError("Could not load records. Please try again.") from exc

    def first(self, model, filters=None, ordering=None):
        rows = self.select(model, filters, ordering)
        return rows[0] if rows else None

    def get(self, model, pk):
        try:
            return self.session.get(model, pk)
        except SQLAlchemyError as exc:
            current_app.logger.exception("Lookup on %s failed", model.__tablename__)
            raise StoreError("Could not load record. Please try again.") from exc

    def get_or_404(self, model, pk, label=None):
        row = self.get(model, pk)
        if row is None:
            raise NotFoundError(f"{label or model.__name__} not found")
        return row

    # =========================================================
    # WRITES (flushed, committed by transaction())
    # =========================================================
    def insert(self, model, rows):
        single = isinstance(rows, dict)
        instances = [model(**row) for row in ([rows] if single else rows)]
        self.session.add_all(instances)
        self._flush()
        return instances[0] if single else instances

    def update(self, model, pk, patch):
        instance = self.get_or_404(model, pk)
        for key, value in patch.items():
            setattr(instance, key, value)
        self._flush()
        return instance

    def delete(self, model, pk):
        instance = self.get_or_404(model, pk)
        self.session.delete(instance)
        self._flush()

    def upsert(self, model, rows, conflict_keys):
        """Insert rows, or patch the existing row sharing the conflict key values."""
        instances = []
        for row in rows:
            key_filter = {k: row[k] for k in conflict_keys}
            existing = self.query(model, key_filter).first()
            if existing is None:
                existing = model(**row)
                self.session.add(existing)
            else:
                for key, value in row.items():
                    setattr(existing, key, value)
            # later rows in the same batch must see this one
            self._flush()
            instances.append(existing)
        return instances

    def _flush(self):
        try:
            self.session.flush()
        except SQLAlchemyError as exc:
            self.session.rollback()
            current_app.logger.exception("Flush failed, session rolled back")
            raise StoreError("The database rejected the change.") from exc

    @contextmanager
    def transaction(self):
        """Commit everything written inside the block, or nothing."""
        try:
            yield self
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            current_app.logger.exception("Transaction rolled back")
            raise StoreError("The database rejected the change.") from exc
        except Exception:
            self.session.rollback()
            raise


def get_store():
    if "record_store" not in g:
        g.record_store = RecordStore(db.session)
    return g.record_store
