"""The data package: members plus the provenance relationships between them.

`DataPackage` is the aggregate root. It owns a dict of members keyed by
identifier and one relationship store, and exposes the two exports: a
resource map rendered in an RDF syntax, and a BagIt zip archive.

Example:
    ```python
    pkg = DataPackage()
    pkg.add_member(Member.from_bytes("do1", b"1,2,3\\n4,5,6"))
    pkg.add_member(Member.from_bytes("do2", b"7,8,9\\n4,10,11"))
    pkg.record_derivation("do1", ["do2"])
    print(pkg.serialize_package(syntax_name="turtle"))
    archive = pkg.serialize_to_bagit()
    ```

A package is not safe for concurrent mutation; callers sharing one between
threads must serialize access themselves.
"""

from pathlib import Path
from typing import Optional, Sequence

from rdflib import Graph

from datapack.bagit import BagArchiveBuilder
from datapack.config import DataPackConfig, load_config
from datapack.identifiers import new_id
from datapack.member import Member
from datapack.relationship import Triple
from datapack.resource_map import build_graph, serialize
from datapack.storage import InMemoryRelationshipStore, RelationshipStoreInterface


class DataPackage:
    """A keyed set of members and an append-only relationship table.

    Args:
        package_id: Optional identifier of the package. It is also the default
            resource map identifier.
        relationship_store: Store for relationship triples. Defaults to a new
            `InMemoryRelationshipStore`.
        config: Settings for serialization and bag export. Loaded with
            `load_config` when omitted.
    """

    def __init__(
        self,
        package_id: Optional[str] = None,
        relationship_store: Optional[RelationshipStoreInterface] = None,
        config: Optional[DataPackConfig] = None,
    ) -> None:
        self.package_id = package_id
        self.config = config if config is not None else load_config()
        self._members: dict[str, Member] = {}
        self._relations = relationship_store if relationship_store is not None else InMemoryRelationshipStore()

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._members

    # --- Members ---

    def add_member(self, member: Member, metadata: Optional[Member] = None) -> str:
        """Adds a member, replacing any member stored under the same identifier.

        When ``metadata`` is given, the metadata member is added too (if it is
        not already present) and recorded as documenting ``member`` with the
        CiTO ``documents``/``isDocumentedBy`` pair.

        Returns:
            The identifier of the added member.
        """
        self._members[member.identifier] = member
        if metadata is not None:
            if not self.contains_id(metadata.identifier):
                self._members[metadata.identifier] = metadata
            self.insert_documents(metadata.identifier, [member.identifier])
        return member.identifier

    def get_member(self, identifier: str) -> Optional[Member]:
        return self._members.get(identifier)

    def get_data(self, identifier: str) -> Optional[bytes]:
        """Returns the content of a member, or None if the identifier is unknown."""
        member = self._members.get(identifier)
        if member is None:
            return None
        return member.read_bytes()

    def contains_id(self, identifier: str) -> bool:
        return identifier in self._members

    def remove_member(self, identifier: str) -> bool:
        """Removes a member. Returns False if no member had that identifier.

        Relationships that mention the member are kept; relationships are
        never removed.
        """
        return self._members.pop(identifier, None) is not None

    def identifiers(self) -> list[str]:
        """Returns the current member identifiers in insertion order."""
        return list(self._members)

    def members(self) -> list[Member]:
        """Returns the current members in the same order as `identifiers`."""
        return list(self._members.values())

    def size(self) -> int:
        return len(self._members)

    # --- Relationships ---

    @property
    def relationships(self) -> RelationshipStoreInterface:
        return self._relations

    def insert_relationship(
        self,
        subject_id: Optional[str],
        object_ids: Sequence[Optional[str]] | str | None,
        predicate: str,
        subject_type: Optional[str] = None,
        object_types: Sequence[Optional[str]] | str | None = None,
        data_type_uris: Sequence[Optional[str]] | str | None = None,
    ) -> list[Triple]:
        """Records one triple per object id. See `RelationshipStoreInterface.insert`."""
        return self._relations.insert(
            subject_id,
            object_ids,
            predicate,
            subject_type=subject_type,
            object_types=object_types,
            data_type_uris=data_type_uris,
        )

    def insert_documents(self, subject_id: str, object_ids: Sequence[str] | str) -> list[Triple]:
        return self._relations.insert_documents(subject_id, object_ids)

    def record_derivation(self, source_id: str, derived_ids: Sequence[str] | str) -> list[Triple]:
        return self._relations.record_derivation(source_id, derived_ids)

    def get_relationships(self) -> list[Triple]:
        """Returns every relationship sorted by (subject, predicate, object)."""
        return self._relations.query()

    # --- Export ---

    def _map_id(self, map_id: Optional[str]) -> str:
        if map_id:
            return map_id
        if self.package_id:
            return self.package_id
        return new_id()

    def build_resource_map(self, map_id: Optional[str] = None, resolve_uri: Optional[str] = None) -> Graph:
        """Builds the resource map graph for the current members and relationships.

        Args:
            map_id: Resource map identifier. Defaults to the package id, or to
                a fresh ``urn:uuid:`` identifier when the package has none.
            resolve_uri: Prefix that turns identifiers into resolvable URIs.
                Defaults to the configured ``resolve_uri``.
        """
        if resolve_uri is None:
            resolve_uri = self.config.resolve_uri
        return build_graph(self._map_id(map_id), self.get_relationships(), self.identifiers(), resolve_uri=resolve_uri)

    def serialize_package(
        self,
        destination: Optional[Path] = None,
        map_id: Optional[str] = None,
        syntax_name: Optional[str] = None,
        mime_type: Optional[str] = None,
        namespaces: Optional[Sequence[tuple[str, str]]] = None,
        syntax_uri: Optional[str] = None,
        resolve_uri: Optional[str] = None,
    ) -> str:
        """Renders the package's resource map, optionally writing it to a file.

        Args:
            destination: File to write. Nothing is written if rendering fails.
            map_id: Resource map identifier; see `build_resource_map`.
            syntax_name: "rdfxml", "json", "ntriples", "turtle" or "dot".
                Defaults to the configured ``default_syntax``.
            mime_type: Expected media type of the output.
            namespaces: (namespace IRI, prefix) pairs added to the configured ones.
            syntax_uri: Optional W3C format URI that must match ``syntax_name``.
            resolve_uri: See `build_resource_map`.

        Returns:
            The rendered resource map.
        """
        graph = self.build_resource_map(map_id=map_id, resolve_uri=resolve_uri)
        merged = [(iri, prefix) for prefix, iri in self.config.namespaces.items()]
        merged.extend(namespaces or ())
        text = serialize(
            graph,
            syntax_name or self.config.default_syntax,
            mime_type=mime_type,
            namespaces=merged,
            syntax_uri=syntax_uri,
        )
        if destination is not None:
            Path(destination).write_text(text, encoding="utf-8")
        return text

    def serialize_to_bagit(self, archive_path: Optional[Path] = None) -> Path:
        """Exports the package as a BagIt zip archive and returns its path."""
        return BagArchiveBuilder(config=self.config).build(self, archive_path=archive_path)
