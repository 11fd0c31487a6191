# pyright: reportMissingTypeStubs=false
"""
Record store and declarative base.

This module owns the only path to the relational store. A ``RecordStore`` is
constructed explicitly, started with ``init()`` and shut down with
``dispose()``; the FastAPI lifespan holds the process-wide instance and
request handlers receive it through dependency injection.

The store exposes four equality-filtered operations scoped to a mapped model
(``select``, ``insert``, ``update``, ``delete``). Each call is its own
transaction unless it is issued through ``transaction()``, which groups
several calls into one unit of work that commits or rolls back as a whole.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.constants import DB_POOL_RECYCLE_SECONDS

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


# Create Base class for declarative models
class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class StoreError(Exception):
    """A query or connection failure reported by the record store."""


class StoreConflictError(StoreError):
    """The store rejected a write because it violates a uniqueness constraint."""


# SQLAlchemy event listeners to automatically set created_at and updated_at
@event.listens_for(Base, "before_insert", propagate=True)  # type: ignore
def receive_before_insert(mapper, connection, target):  # type: ignore
    """Set created_at and updated_at on insert."""
    # Import here to avoid circular import
    from utils.datetime_utils import utc_now
    now = utc_now()
    for column_name in ("created_at", "updated_at"):
        if hasattr(mapper, "columns") and column_name in mapper.columns:  # type: ignore
            if getattr(target, column_name, None) is None:
                setattr(target, column_name, now)


@event.listens_for(Base, "before_update", propagate=True)  # type: ignore
def receive_before_update(mapper, connection, target):  # type: ignore
    """Set updated_at on update."""
    from utils.datetime_utils import utc_now
    if hasattr(mapper, "columns") and "updated_at" in mapper.columns:  # type: ignore
        setattr(target, "updated_at", utc_now())


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):  # type: ignore
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class RecordSession:
    """
    Record operations bound to one open SQLAlchemy session.

    Obtained from ``RecordStore.transaction()``. All filters are equality
    filters on mapped column names; ``None`` matches SQL NULL.
    """

    def __init__(self, db: Session):
        self.db = db

    def select(
        self,
        model: Type[ModelT],
        order_by: Optional[Any] = None,
        **filters: Any
    ) -> List[ModelT]:
        query = self.db.query(model).filter_by(**filters)
        if order_by is not None:
            query = query.order_by(order_by)
        return query.all()

    def first(self, model: Type[ModelT], **filters: Any) -> Optional[ModelT]:
        """Return the oldest matching record, or None."""
        return (
            self.db.query(model)
            .filter_by(**filters)
            .order_by(model.id)  # type: ignore[attr-defined]
            .first()
        )

    def insert(self, model: Type[ModelT], records: Sequence[Dict[str, Any]]) -> List[ModelT]:
        created = [model(**record) for record in records]
        self.db.add_all(created)
        self.db.flush()
        return created

    def update(self, model: Type[ModelT], filters: Dict[str, Any], patch: Dict[str, Any]) -> int:
        """Apply ``patch`` to every matching record and return the affected count."""
        if not patch:
            return 0
        columns = model.__table__.columns  # type: ignore[attr-defined]
        if "updated_at" in columns and "updated_at" not in patch:
            from utils.datetime_utils import utc_now
            patch = {**patch, "updated_at": utc_now()}
        return (
            self.db.query(model)
            .filter_by(**filters)
            .update(patch, synchronize_session="fetch")
        )

    def delete(self, model: Type[ModelT], **filters: Any) -> int:
        return (
            self.db.query(model)
            .filter_by(**filters)
            .delete(synchronize_session="fetch")
        )


class RecordStore:
    """
    Explicitly managed client for the relational record store.

    Example:
        ```python
        store = RecordStore(DATABASE_URL).init()
        with store.transaction() as tx:
            patient = tx.first(Patient, app_id="dental", email="ana@example.com")
        store.dispose()
        ```
    """

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        self.echo = echo
        self.engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker[Session]] = None

    @property
    def is_initialized(self) -> bool:
        return self.engine is not None

    def init(self) -> "RecordStore":
        """Create the engine and session factory. Safe to call twice."""
        if self.engine is not None:
            return self

        engine_kwargs: Dict[str, Any] = {
            "echo": self.echo,
            "future": True,
        }
        is_sqlite = self.database_url.startswith("sqlite")
        if is_sqlite:
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if self.database_url in ("sqlite://", "sqlite:///:memory:"):
                # Single shared connection so every session sees the same in-memory database
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_pre_ping"] = True  # Verify connections before use
            engine_kwargs["pool_recycle"] = DB_POOL_RECYCLE_SECONDS

        self.engine = create_engine(self.database_url, **engine_kwargs)
        if is_sqlite:
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self._session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
            expire_on_commit=False,  # Records stay readable after the session closes
        )
        logger.info("Record store initialized")
        return self

    def dispose(self) -> None:
        """Close every pooled connection. The store can be re-initialized afterwards."""
        if self.engine is not None:
            self.engine.dispose()
            logger.info("Record store disposed")
        self.engine = None
        self._session_factory = None

    @contextmanager
    def transaction(self) -> Generator[RecordSession, None, None]:
        """
        Run several record operations as one unit of work.

        Commits when the block exits normally, rolls back on any exception.
        SQLAlchemy failures are re-raised as ``StoreError`` (or
        ``StoreConflictError`` for integrity violations).
        """
        if self._session_factory is None:
            raise StoreError("Record store is not initialized")

        db = self._session_factory()
        try:
            yield RecordSession(db)
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"Store rejected write: {e.orig}")
            raise StoreConflictError(str(e.orig)) from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Store operation failed: {e}")
            raise StoreError(str(e)) from e
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def select(self, model: Type[ModelT], order_by: Optional[Any] = None, **filters: Any) -> List[ModelT]:
        with self.transaction() as tx:
            return tx.select(model, order_by=order_by, **filters)

    def first(self, model: Type[ModelT], **filters: Any) -> Optional[ModelT]:
        with self.transaction() as tx:
            return tx.first(model, **filters)

    def insert(self, model: Type[ModelT], records: Sequence[Dict[str, Any]]) -> List[ModelT]:
        with self.transaction() as tx:
            return tx.insert(model, records)

    def update(self, model: Type[ModelT], filters: Dict[str, Any], patch: Dict[str, Any]) -> int:
        with self.transaction() as tx:
            return tx.update(model, filters, patch)

    def delete(self, model: Type[ModelT], **filters: Any) -> int:
        with self.transaction() as tx:
            return tx.delete(model, **filters)

    def create_tables(self) -> None:
        """
        Create all tables defined on ``Base``.

        Safe to call multiple times - will not recreate existing tables.
        """
        if self.engine is None:
            raise StoreError("Record store is not initialized")
        # Import models so every table is registered on Base.metadata
        import models  # noqa: F401
        try:
            Base.metadata.create_all(bind=self.engine)
            logger.info("Database tables created successfully")
        except SQLAlchemyError as e:
            logger.exception(f"Failed to create database tables: {e}")
            raise StoreError(str(e)) from e

    def drop_tables(self) -> None:
        """
        Drop all tables defined on ``Base``.

        WARNING: This will permanently delete all data in the tables!
        """
        if self.engine is None:
            raise StoreError("Record store is not initialized")
        import models  # noqa: F401
        try:
            Base.metadata.drop_all(bind=self.engine)
            logger.info("Database tables dropped successfully")
        except SQLAlchemyError as e:
            logger.exception(f"Failed to drop database tables: {e}")
            raise StoreError(str(e)) from e
