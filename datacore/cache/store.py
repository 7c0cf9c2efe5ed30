"""
Durable key-value stores backing the persistent cache mirror.

The mirror only needs string get/set/remove. ``keys()`` is optional and lets
the mirror clear or invalidate its namespace; stores that cannot enumerate
return None.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger("cache.store")

Base = declarative_base()


class KeyValueStore(ABC):
    """String-to-string store; every method may raise on I/O failure."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass

    def keys(self) -> Optional[List[str]]:
        """All stored keys, or None if this store cannot enumerate them."""
        return None


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local fallback for tests and environments without durable storage."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)


class StoredItem(Base):
    """
    One durable cache row.
    The value is the serialized entry; expiry is decided by the reader.
    """
    __tablename__ = "cache_entries"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<StoredItem(key='{self.key}')>"


class SqlKeyValueStore(KeyValueStore):
    """
    KeyValueStore on any SQLAlchemy database (SQLite file by default).

    Each call opens its own short session, so the store can be shared by
    several caches without holding connections between calls.
    """

    def __init__(self, database_url: str = "sqlite:///./datacore_cache.db", echo: bool = False):
        self.database_url = database_url
        engine_kwargs = {"echo": echo}
        if database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                # Keep a single connection so the in-memory database survives
                engine_kwargs["poolclass"] = StaticPool

        self._engine = create_engine(database_url, **engine_kwargs)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        Base.metadata.create_all(bind=self._engine)

    def get(self, key: str) -> Optional[str]:
        with self._session_factory() as session:
            item = session.get(StoredItem, key)
            return item.value if item is not None else None

    def set(self, key: str, value: str) -> None:
        with self._session_factory() as session:
            item = session.get(StoredItem, key)
            if item is None:
                session.add(StoredItem(key=key, value=value))
            else:
                item.value = value
            session.commit()

    def remove(self, key: str) -> None:
        with self._session_factory() as session:
            session.query(StoredItem).filter(StoredItem.key == key).delete()
            session.commit()

    def keys(self) -> List[str]:
        with self._session_factory() as session:
            return [row[0] for row in session.query(StoredItem.key).all()]

    def dispose(self) -> None:
        """Release pooled connections."""
        self._engine.dispose()
