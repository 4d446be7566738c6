"""
BagIt Tag File Models

Lightweight Pydantic models defining the contract between bag producers
(datapack.bagit) and consumers (bagbundle.reader, repository ingest).

Each model renders the exact line(s) written to its tag file and parses them
back, so both sides agree on the byte layout.
"""

import re
from datetime import date
from typing import List

from pydantic import BaseModel, Field

BAGIT_TXT = "bagit.txt"
BAG_INFO_TXT = "bag-info.txt"
PID_MAPPING_TXT = "pid-mapping.txt"
MANIFEST_TXT = "manifest-md5.txt"
TAG_MANIFEST_TXT = "tagmanifest-md5.txt"
PAYLOAD_DIR = "data"

# Tag files covered by tagmanifest-md5.txt, in the order they are listed
TAG_FILES = (BAG_INFO_TXT, BAGIT_TXT, PID_MAPPING_TXT)

KB_THRESHOLD = 1024
MB_THRESHOLD = 1_000_000
GB_THRESHOLD = 1_000_000_000


def format_bag_size(total_bytes: int) -> str:
    """Format a payload size as ``"<value> <unit>"`` for the Bag-Size field.

    Units switch at 1024 bytes, one million bytes and one billion bytes.
    Kilobytes divide by 1024 while megabytes and gigabytes divide by powers
    of ten. The value always carries six decimals, e.g. ``"22.000000 B"``.
    """
    if total_bytes < KB_THRESHOLD:
        value, unit = float(total_bytes), "B"
    elif total_bytes < MB_THRESHOLD:
        value, unit = total_bytes / 1024.0, "KB"
    elif total_bytes < GB_THRESHOLD:
        value, unit = total_bytes / 1_000_000.0, "MB"
    else:
        value, unit = total_bytes / 1_000_000_000.0, "GB"
    return f"{value:f} {unit}"


class BagDeclaration(BaseModel):
    """Contents of bagit.txt."""

    version: str = Field("0.97", description="BagIt specification version")
    encoding: str = Field("UTF-8", description="Character encoding of the tag files")

    def lines(self) -> List[str]:
        return [f"BagIt-Version: {self.version}", f"Tag-File-Character-Encoding: {self.encoding}"]

    @classmethod
    def from_lines(cls, lines: List[str]) -> "BagDeclaration":
        fields = _parse_labels(lines)
        return cls(version=fields["BagIt-Version"], encoding=fields["Tag-File-Character-Encoding"])


class BagInfo(BaseModel):
    """Contents of bag-info.txt."""

    payload_bytes: int = Field(..., ge=0, description="Total size of all payload files")
    payload_files: int = Field(..., ge=0, description="Number of payload files")
    bagging_date: date = Field(..., description="Date the bag was assembled")
    bag_size: str = Field(..., description="Human readable payload size, e.g. '22.000000 B'")

    @classmethod
    def for_payload(cls, payload_bytes: int, payload_files: int, bagging_date: date) -> "BagInfo":
        return cls(
            payload_bytes=payload_bytes,
            payload_files=payload_files,
            bagging_date=bagging_date,
            bag_size=format_bag_size(payload_bytes),
        )

    @property
    def payload_oxum(self) -> str:
        return f"{self.payload_bytes}.{self.payload_files}"

    def lines(self) -> List[str]:
        return [
            f"Payload-Oxum: {self.payload_oxum}",
            f"Bagging-Date: {self.bagging_date.isoformat()}",
            f"Bag-Size: {self.bag_size}",
        ]

    @classmethod
    def from_lines(cls, lines: List[str]) -> "BagInfo":
        fields = _parse_labels(lines)
        payload_bytes, payload_files = fields["Payload-Oxum"].split(".", 1)
        return cls(
            payload_bytes=int(payload_bytes),
            payload_files=int(payload_files),
            bagging_date=date.fromisoformat(fields["Bagging-Date"]),
            bag_size=fields["Bag-Size"],
        )


class ManifestEntry(BaseModel):
    """One line of manifest-md5.txt or tagmanifest-md5.txt."""

    digest: str = Field(..., pattern=r"^[0-9a-f]{32}$", description="Hex MD5 digest of the file")
    path: str = Field(..., description="Path relative to the bag root")

    def line(self) -> str:
        return f"{self.digest} {self.path}"

    @classmethod
    def from_line(cls, line: str) -> "ManifestEntry":
        digest, path = _split_pair(line)
        return cls(digest=digest, path=path)


class PidMapping(BaseModel):
    """One line of pid-mapping.txt: which identifier a payload file carries."""

    identifier: str = Field(..., description="Package member identifier or resource map id")
    path: str = Field(..., description="Payload path relative to the bag root")

    def line(self) -> str:
        return f"{self.identifier} {self.path}"

    @classmethod
    def from_line(cls, line: str) -> "PidMapping":
        # Identifiers may contain spaces; the path always starts at " data/".
        identifier, sep, rest = line.rstrip("\n").partition(f" {PAYLOAD_DIR}/")
        if not sep or not identifier or not rest:
            raise ValueError(f"Malformed tag file line: {line!r}")
        return cls(identifier=identifier, path=f"{PAYLOAD_DIR}/{rest}")


def _split_pair(line: str) -> tuple[str, str]:
    # Split on the first space only so payload paths may contain spaces.
    parts = line.rstrip("\n").split(" ", 1)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError(f"Malformed tag file line: {line!r}")
    return parts[0], parts[1]


_LABEL_RE = re.compile(r"^(?P<label>[^:]+):\s*(?P<value>.*)$")


def _parse_labels(lines: List[str]) -> dict[str, str]:
    fields: dict[str, str] = {}
    for line in lines:
        if not line.strip():
            continue
        match = _LABEL_RE.match(line)
        if match is None:
            raise ValueError(f"Malformed tag file line: {line!r}")
        fields[match.group("label").strip()] = match.group("value").strip()
    return fields
