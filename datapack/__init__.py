"""
Data packages with provenance, exported as OAI-ORE resource maps and BagIt archives.

A `DataPackage` holds members (in-memory bytes or external files) and an
append-only table of relationship triples between them. It can be rendered
as a resource map in several RDF syntaxes, or packed into a checksummed
BagIt zip archive:

    from datapack import DataPackage, Member

    pkg = DataPackage()
    pkg.add_member(Member.from_bytes("do1", b"1,2,3\\n4,5,6"))
    pkg.add_member(Member.from_bytes("do2", b"7,8,9\\n4,10,11"))
    pkg.record_derivation("do1", ["do2"])
    archive = pkg.serialize_to_bagit()
"""

from datapack.bagit import BagArchiveBuilder, write_bag
from datapack.clock import PackageClock
from datapack.config import DataPackConfig, load_config
from datapack.errors import (
    BagBuildError,
    DataPackError,
    MissingPayloadError,
    SerializationError,
    UnsupportedSyntaxError,
    ValidationError,
)
from datapack.member import Member
from datapack.package import DataPackage
from datapack.relationship import NodeType, Triple
from datapack.resource_map import SYNTAXES, build_graph, serialize, serialize_to_file
from datapack.storage import InMemoryRelationshipStore, RelationshipStoreInterface

__all__ = [
    "DataPackage",
    "Member",
    "Triple",
    "NodeType",
    "RelationshipStoreInterface",
    "InMemoryRelationshipStore",
    "SYNTAXES",
    "build_graph",
    "serialize",
    "serialize_to_file",
    "BagArchiveBuilder",
    "write_bag",
    "PackageClock",
    "DataPackConfig",
    "load_config",
    "DataPackError",
    "ValidationError",
    "SerializationError",
    "UnsupportedSyntaxError",
    "BagBuildError",
    "MissingPayloadError",
]

__version__ = "0.1.0"
