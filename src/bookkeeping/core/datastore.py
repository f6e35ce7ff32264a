#!/usr/bin/env python3
"""
EntityStore Protocol - Standard interface for entity persistence.

Separates persistence from the calculation engine: the engine works on
in-memory collections and the caller saves whatever state it returns. Two
implementations are provided, an in-memory store for tests and embedding and a
JSON-file store with one pretty-printed file per entity type.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

from .json_utils import read_json, write_json
from .models import BankAccount, Currency, MappingRule, Reconciliation, Transaction

if TYPE_CHECKING:
    from ..book import Book

logger = logging.getLogger(__name__)

T = TypeVar("T")

STORE_FORMAT_VERSION = 1


class EntityStore(Protocol[T]):
    """
    Protocol for key-indexed entity persistence.

    Type parameter T is the entity type (Transaction, BankAccount, ...).
    Iteration order of all() is insertion order.
    """

    def exists(self) -> bool:
        """
        Check if data exists in storage.

        Returns:
            True if the backing storage has been written, False otherwise
        """
        ...

    def get(self, key: str) -> T | None:
        """Get an entity by key, or None if absent."""
        ...

    def put(self, entity: T) -> None:
        """Insert or replace an entity by its key."""
        ...

    def delete(self, key: str) -> bool:
        """
        Delete an entity.

        Returns:
            True if an entity was removed, False if the key was unknown
        """
        ...

    def all(self) -> list[T]:
        """All entities in insertion order."""
        ...

    def replace_all(self, entities: Iterable[T]) -> None:
        """Replace the whole collection."""
        ...

    def item_count(self) -> int:
        ...


def _entity_key(entity: Any) -> str:
    key = getattr(entity, "id", None)
    if key is None:
        key = entity.code
    return str(key)


class InMemoryEntityStore(EntityStore[T]):
    """Dictionary-backed store. Nothing survives the process."""

    def __init__(self, entities: Iterable[T] = ()):
        self._items: dict[str, T] = {}
        for entity in entities:
            self.put(entity)

    def exists(self) -> bool:
        return bool(self._items)

    def get(self, key: str) -> T | None:
        return self._items.get(key)

    def put(self, entity: T) -> None:
        self._items[_entity_key(entity)] = entity

    def delete(self, key: str) -> bool:
        return self._items.pop(key, None) is not None

    def all(self) -> list[T]:
        return list(self._items.values())

    def replace_all(self, entities: Iterable[T]) -> None:
        self._items = {}
        for entity in entities:
            self.put(entity)

    def item_count(self) -> int:
        return len(self._items)


class JsonEntityStore(EntityStore[T]):
    """
    JSON-file store for one entity type.

    File layout:
        {"format_version": 1, "entity_type": "transactions", "items": [...]}

    Every put/delete rewrites the file. Monetary fields are stored as the
    decimal strings produced by the entity's to_dict(), so values such as
    "100.50" come back exactly as written.
    """

    def __init__(self, filepath: Path, entity_type: str, from_dict: Callable[[dict[str, Any]], T]):
        self.filepath = Path(filepath)
        self.entity_type = entity_type
        self._from_dict = from_dict
        self._cache: dict[str, T] | None = None

    def exists(self) -> bool:
        return self.filepath.exists()

    def _load(self) -> dict[str, T]:
        if self._cache is not None:
            return self._cache

        if not self.filepath.exists():
            self._cache = {}
            return self._cache

        try:
            data = read_json(self.filepath)
        except ValueError as e:
            raise ValueError(f"Corrupt {self.entity_type} store {self.filepath}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("items"), list):
            raise ValueError(f"Corrupt {self.entity_type} store {self.filepath}: missing items list")

        items: dict[str, T] = {}
        for raw in data["items"]:
            try:
                entity = self._from_dict(raw)
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"Corrupt {self.entity_type} record in {self.filepath}: {e}") from e
            items[_entity_key(entity)] = entity

        logger.debug(f"Loaded {len(items)} {self.entity_type} from {self.filepath}")
        self._cache = items
        return items

    def _flush(self) -> None:
        items = self._load()
        write_json(
            self.filepath,
            {
                "format_version": STORE_FORMAT_VERSION,
                "entity_type": self.entity_type,
                "items": [entity.to_dict() for entity in items.values()],  # type: ignore[attr-defined]
            },
        )

    def get(self, key: str) -> T | None:
        return self._load().get(key)

    def put(self, entity: T) -> None:
        self._load()[_entity_key(entity)] = entity
        self._flush()

    def delete(self, key: str) -> bool:
        removed = self._load().pop(key, None) is not None
        if removed:
            self._flush()
        return removed

    def all(self) -> list[T]:
        return list(self._load().values())

    def replace_all(self, entities: Iterable[T]) -> None:
        self._cache = {}
        for entity in entities:
            self._cache[_entity_key(entity)] = entity
        self._flush()

    def item_count(self) -> int:
        return len(self._load())

    def last_modified(self) -> datetime | None:
        if not self.filepath.exists():
            return None
        return datetime.fromtimestamp(self.filepath.stat().st_mtime)


class BookRepository:
    """
    Loads and saves a whole Book through five entity stores.

    Example:
        >>> repo = BookRepository.in_directory(Path("data/store"))
        >>> book = repo.load()
        >>> repo.save(book)
    """

    def __init__(
        self,
        accounts: EntityStore[BankAccount],
        transactions: EntityStore[Transaction],
        mapping_rules: EntityStore[MappingRule],
        reconciliations: EntityStore[Reconciliation],
        currencies: EntityStore[Currency],
    ):
        self.accounts = accounts
        self.transactions = transactions
        self.mapping_rules = mapping_rules
        self.reconciliations = reconciliations
        self.currencies = currencies

    @classmethod
    def in_directory(cls, store_dir: Path) -> "BookRepository":
        """JSON-backed repository with one file per entity type."""
        store_dir = Path(store_dir)
        return cls(
            accounts=JsonEntityStore(store_dir / "accounts.json", "accounts", BankAccount.from_dict),
            transactions=JsonEntityStore(store_dir / "transactions.json", "transactions", Transaction.from_dict),
            mapping_rules=JsonEntityStore(store_dir / "mapping_rules.json", "mapping_rules", MappingRule.from_dict),
            reconciliations=JsonEntityStore(
                store_dir / "reconciliations.json", "reconciliations", Reconciliation.from_dict
            ),
            currencies=JsonEntityStore(store_dir / "currencies.json", "currencies", Currency.from_dict),
        )

    @classmethod
    def in_memory(cls) -> "BookRepository":
        return cls(
            accounts=InMemoryEntityStore(),
            transactions=InMemoryEntityStore(),
            mapping_rules=InMemoryEntityStore(),
            reconciliations=InMemoryEntityStore(),
            currencies=InMemoryEntityStore(),
        )

    def load(self) -> "Book":
        from ..book import Book

        return Book(
            accounts=tuple(self.accounts.all()),
            transactions=tuple(self.transactions.all()),
            mapping_rules=tuple(self.mapping_rules.all()),
            reconciliations=tuple(self.reconciliations.all()),
            currencies=tuple(self.currencies.all()),
        )

    def save(self, book: "Book") -> None:
        self.accounts.replace_all(book.accounts)
        self.transactions.replace_all(book.transactions)
        self.mapping_rules.replace_all(book.mapping_rules)
        self.reconciliations.replace_all(book.reconciliations)
        self.currencies.replace_all(book.currencies)
        logger.info(
            f"Saved book: {len(book.accounts)} accounts, {len(book.transactions)} transactions, "
            f"{len(book.mapping_rules)} rules"
        )
