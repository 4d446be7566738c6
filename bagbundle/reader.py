"""Read and verify BagIt archives produced by ``datapack.bagit``.

The archive is read straight from the zip file; nothing is extracted to
disk. ``verify_bag`` recomputes every digest listed in the payload manifest
and the tag manifest.
"""

import hashlib
import zipfile
from pathlib import Path
from typing import List

from pydantic import BaseModel, Field

from .models import (
    BAG_INFO_TXT,
    BAGIT_TXT,
    MANIFEST_TXT,
    PID_MAPPING_TXT,
    TAG_MANIFEST_TXT,
    BagDeclaration,
    BagInfo,
    ManifestEntry,
    PidMapping,
)


class BagContents(BaseModel):
    """Parsed tag files of one bag archive."""

    declaration: BagDeclaration
    info: BagInfo
    pid_mappings: List[PidMapping] = Field(default_factory=list)
    manifest: List[ManifestEntry] = Field(default_factory=list)
    tag_manifest: List[ManifestEntry] = Field(default_factory=list)
    members: List[str] = Field(default_factory=list, description="Every file name in the archive, in archive order")

    def payload_paths(self) -> List[str]:
        return [entry.path for entry in self.manifest]

    def identifier_for(self, path: str) -> str | None:
        for mapping in self.pid_mappings:
            if mapping.path == path:
                return mapping.identifier
        return None


def _read_lines(zf: zipfile.ZipFile, name: str) -> List[str]:
    return [line for line in zf.read(name).decode("utf-8").splitlines() if line.strip()]


def read_bag(zip_path: Path) -> BagContents:
    """Parse the tag files of a bag archive.

    Raises:
        KeyError: If a required tag file is missing from the archive.
        ValueError: If a tag file line is malformed.
    """
    with zipfile.ZipFile(zip_path, "r") as zf:
        return BagContents(
            declaration=BagDeclaration.from_lines(_read_lines(zf, BAGIT_TXT)),
            info=BagInfo.from_lines(_read_lines(zf, BAG_INFO_TXT)),
            pid_mappings=[PidMapping.from_line(line) for line in _read_lines(zf, PID_MAPPING_TXT)],
            manifest=[ManifestEntry.from_line(line) for line in _read_lines(zf, MANIFEST_TXT)],
            tag_manifest=[ManifestEntry.from_line(line) for line in _read_lines(zf, TAG_MANIFEST_TXT)],
            members=zf.namelist(),
        )


def verify_bag(zip_path: Path) -> List[str]:
    """Return the paths whose content does not match its manifest digest.

    Files listed in a manifest but absent from the archive are reported too.
    An empty list means every payload and tag file is intact.
    """
    contents = read_bag(zip_path)
    failures: List[str] = []
    with zipfile.ZipFile(zip_path, "r") as zf:
        names = set(zf.namelist())
        for entry in contents.manifest + contents.tag_manifest:
            if entry.path not in names:
                failures.append(entry.path)
                continue
            actual = hashlib.md5(zf.read(entry.path), usedforsecurity=False).hexdigest()
            if actual != entry.digest:
                failures.append(entry.path)
    return failures
