"""Storage interface definitions for package relationships."""

from abc import ABC, abstractmethod
from typing import Sequence

from datapack.relationship import Triple


class RelationshipStoreInterface(ABC):
    """Abstract interface for an append-only relationship table.

    There are deliberately no update or delete operations: relationships are
    only ever appended, and ``query`` always returns them in a stable order.
    """

    @abstractmethod
    def insert(
        self,
        subject_id: str | None,
        object_ids: Sequence[str | None] | str | None,
        predicate: str,
        subject_type: str | None = None,
        object_types: Sequence[str | None] | str | None = None,
        data_type_uris: Sequence[str | None] | str | None = None,
    ) -> list[Triple]:
        """Append one triple per object id and return the appended triples.

        A missing subject, or a missing set of objects, is replaced by a
        freshly generated blank node. Invalid node types raise
        ValidationError and nothing from the call is stored.
        """

    @abstractmethod
    def insert_documents(self, subject_id: str, object_ids: Sequence[str] | str) -> list[Triple]:
        """Record that ``subject_id`` documents each object, plus the inverse links."""

    @abstractmethod
    def record_derivation(self, source_id: str, derived_ids: Sequence[str] | str) -> list[Triple]:
        """Record that each derived id was derived from ``source_id``."""

    @abstractmethod
    def query(self) -> list[Triple]:
        """Return all triples sorted by (subject, predicate, object)."""

    @abstractmethod
    def count(self) -> int:
        """Return total number of stored triples."""

    def __len__(self) -> int:
        return self.count()
