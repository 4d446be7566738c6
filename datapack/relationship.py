"""Relationship triples for data package provenance.

Each relationship is a triple: (subject, predicate, object)

- **Subject**: an identifier (member id, URI or blank node token)
- **Predicate**: an IRI, usually from CiTO or PROV
- **Object**: an identifier, blank node token or literal value

For example:
    - ("do2", prov:wasDerivedFrom, "do1")
    - ("metadata.xml", cito:documents, "do1")

Node types follow RDF conventions. A subject may be a ``uri`` or a ``blank``
node; an object may also be a ``literal``. ``None`` means the type was not
given and is inferred when the triple is turned into RDF terms.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class NodeType(str, Enum):
    """RDF node type of a triple's subject or object."""

    URI = "uri"
    BLANK = "blank"
    LITERAL = "literal"


SUBJECT_TYPES: frozenset[str | None] = frozenset({NodeType.URI.value, NodeType.BLANK.value, None})
OBJECT_TYPES: frozenset[str | None] = frozenset({NodeType.URI.value, NodeType.LITERAL.value, NodeType.BLANK.value, None})


class Triple(BaseModel):
    """An immutable (subject, predicate, object) statement with node typing."""

    model_config = {"frozen": True}

    subject: str = Field(description="Subject identifier or blank node token.")
    predicate: str = Field(description="Predicate IRI.")
    object: str = Field(description="Object identifier, blank node token or literal value.")
    subject_type: NodeType | None = Field(default=None, description="uri, blank, or None when unspecified.")
    object_type: NodeType | None = Field(default=None, description="uri, literal, blank, or None when unspecified.")
    data_type_uri: str | None = Field(default=None, description="Datatype IRI for literal objects.")

    def sort_key(self) -> tuple[str, str, str]:
        return (self.subject, self.predicate, self.object)
