"""
BagIt Bundle Models

Lightweight Pydantic models defining the tag-file contract between bag
producers (datapack) and consumers (repository ingest, archive checkers).

This package has minimal dependencies (only pydantic) and is designed to be
importable without pulling in rdflib.

Example:
    from bagbundle import read_bag, verify_bag

    contents = read_bag(Path("package.zip"))
    print(contents.info.payload_oxum)
    assert verify_bag(Path("package.zip")) == []
"""

from .models import (
    BagDeclaration,
    BagInfo,
    ManifestEntry,
    PidMapping,
    format_bag_size,
)
from .reader import BagContents, read_bag, verify_bag

__all__ = [
    "BagDeclaration",
    "BagInfo",
    "ManifestEntry",
    "PidMapping",
    "format_bag_size",
    "BagContents",
    "read_bag",
    "verify_bag",
]

__version__ = "0.1.0"
