"""In-memory relationship storage.

Keeps every triple in a Python list for the lifetime of the package. This is
the only store a package needs: relationships are not persisted anywhere
except inside exported resource maps and bags.

Thread safety: Not thread-safe. Callers that share a package between threads
must serialize inserts and builds themselves.
"""

from typing import Sequence

from datapack.errors import ValidationError
from datapack.identifiers import IdFactory, new_blank_node
from datapack.relationship import OBJECT_TYPES, SUBJECT_TYPES, NodeType, Triple
from datapack.storage.interfaces import RelationshipStoreInterface
from datapack.vocab import DOCUMENTS, IS_DOCUMENTED_BY, WAS_DERIVED_FROM


def _as_list(values: Sequence[str | None] | str | None) -> list[str | None]:
    """Normalize a scalar-or-sequence argument into a list."""
    if values is None:
        return []
    if isinstance(values, str):
        return [values]
    return list(values)


def _padded(values: list[str | None], length: int) -> list[str | None]:
    return values[:length] + [None] * max(0, length - len(values))


class InMemoryRelationshipStore(RelationshipStoreInterface):
    """Append-only relationship table backed by a list of Triple models.

    Example:
        ```python
        store = InMemoryRelationshipStore()
        store.record_derivation("raw.csv", ["clean.csv"])
        store.query()
        ```
    """

    def __init__(self, blank_node_factory: IdFactory = new_blank_node) -> None:
        self._triples: list[Triple] = []
        self._new_blank_node = blank_node_factory

    def insert(
        self,
        subject_id: str | None,
        object_ids: Sequence[str | None] | str | None,
        predicate: str,
        subject_type: str | None = None,
        object_types: Sequence[str | None] | str | None = None,
        data_type_uris: Sequence[str | None] | str | None = None,
    ) -> list[Triple]:
        """Appends triples from one subject to each object.

        Args:
            subject_id: Subject identifier. None requests an anonymous blank node.
            object_ids: Object identifiers. None, an empty list or a list of
                only None values requests a single anonymous blank node.
            predicate: Predicate IRI applied to every triple.
            subject_type: "uri", "blank" or None.
            object_types: Per-object types ("uri", "literal", "blank" or None),
                padded with None when shorter than ``object_ids``.
            data_type_uris: Per-object datatype IRIs, padded likewise.

        Returns:
            The triples appended by this call, in object order.

        Raises:
            ValidationError: If the predicate is empty or a node type is not
                valid for its position. No triple from the call is stored.
        """
        if not predicate or not predicate.strip():
            raise ValidationError("predicate must be a non-empty IRI")

        if subject_id is None:
            subject_id = self._new_blank_node()
            subject_type = NodeType.BLANK.value

        objects = _as_list(object_ids)
        types = _as_list(object_types)
        if all(obj is None for obj in objects):
            objects = [self._new_blank_node()]
            types = [NodeType.BLANK.value]

        types = _padded(types, len(objects))
        data_types = _padded(_as_list(data_type_uris), len(objects))

        if subject_type not in SUBJECT_TYPES:
            raise ValidationError(f"Invalid subject type: {subject_type}")

        new_triples: list[Triple] = []
        for obj, obj_type, data_type in zip(objects, types, data_types):
            if obj_type not in OBJECT_TYPES:
                raise ValidationError(f"Invalid object type: {obj_type}")
            if obj is None:
                raise ValidationError(f"Missing object identifier for subject {subject_id!r}")
            new_triples.append(
                Triple(
                    subject=subject_id,
                    predicate=predicate,
                    object=obj,
                    subject_type=subject_type,
                    object_type=obj_type,
                    data_type_uri=data_type,
                )
            )

        self._triples.extend(new_triples)
        return new_triples

    def insert_documents(self, subject_id: str, object_ids: Sequence[str] | str) -> list[Triple]:
        """Inserts CiTO ``documents`` and inverse ``isDocumentedBy`` triples.

        Args:
            subject_id: The documenting member (typically a metadata file).
            object_ids: The documented members.

        Returns:
            The ``documents`` triples followed by the ``isDocumentedBy`` triples.
        """
        objects = _as_list(object_ids)
        inserted = self.insert(subject_id, objects, DOCUMENTS)
        for obj in objects:
            inserted.extend(self.insert(obj, [subject_id], IS_DOCUMENTED_BY))
        return inserted

    def record_derivation(self, source_id: str, derived_ids: Sequence[str] | str) -> list[Triple]:
        """Inserts one PROV ``wasDerivedFrom`` triple per derived member.

        A member may be recorded as derived from itself; such self-loops are
        stored as given.
        """
        inserted: list[Triple] = []
        for derived in _as_list(derived_ids):
            inserted.extend(self.insert(derived, [source_id], WAS_DERIVED_FROM))
        return inserted

    def query(self) -> list[Triple]:
        """Returns all triples sorted by (subject, predicate, object).

        The sort is stable, so duplicate triples keep their insertion order
        and identical insert sequences always produce identical results.
        """
        return sorted(self._triples, key=Triple.sort_key)

    def count(self) -> int:
        return len(self._triples)
