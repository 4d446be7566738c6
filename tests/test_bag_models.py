"""Tests for the BagIt tag file models.

This module verifies:
- Bag-Size unit thresholds and six-decimal formatting
- Each tag file model renders the exact lines written to disk
- Parsing rendered lines gives back an equal model
- Malformed lines are rejected
"""

from datetime import date

import pytest
from pydantic import ValidationError

from bagbundle.models import BagDeclaration, BagInfo, ManifestEntry, PidMapping, format_bag_size

DIGEST = "d41d8cd98f00b204e9800998ecf8427e"


class TestFormatBagSize:
    @pytest.mark.parametrize(
        "total, expected",
        [
            (0, "0.000000 B"),
            (22, "22.000000 B"),
            (1023, "1023.000000 B"),
            (1024, "1.000000 KB"),
            (1536, "1.500000 KB"),
            (999_999, "976.561523 KB"),
            (1_000_000, "1.000000 MB"),
            (2_500_000, "2.500000 MB"),
            (1_000_000_000, "1.000000 GB"),
        ],
    )
    def test_thresholds(self, total: int, expected: str) -> None:
        assert format_bag_size(total) == expected


class TestBagDeclaration:
    def test_lines(self) -> None:
        assert BagDeclaration().lines() == ["BagIt-Version: 0.97", "Tag-File-Character-Encoding: UTF-8"]

    def test_from_lines(self) -> None:
        declaration = BagDeclaration.from_lines(["BagIt-Version: 1.0", "Tag-File-Character-Encoding: UTF-8", ""])
        assert declaration.version == "1.0"


class TestBagInfo:
    def test_for_payload(self) -> None:
        info = BagInfo.for_payload(22, 2, date(2024, 1, 15))

        assert info.payload_oxum == "22.2"
        assert info.lines() == [
            "Payload-Oxum: 22.2",
            "Bagging-Date: 2024-01-15",
            "Bag-Size: 22.000000 B",
        ]

    def test_parse_rendered_lines(self) -> None:
        info = BagInfo.for_payload(2048, 3, date(2024, 1, 15))
        assert BagInfo.from_lines(info.lines()) == info

    def test_negative_size_rejected(self) -> None:
        with pytest.raises(ValidationError):
            BagInfo(payload_bytes=-1, payload_files=0, bagging_date=date(2024, 1, 15), bag_size="0 B")

    def test_missing_label(self) -> None:
        with pytest.raises(KeyError):
            BagInfo.from_lines(["Payload-Oxum: 22.2"])

    def test_unlabelled_line(self) -> None:
        with pytest.raises(ValueError):
            BagInfo.from_lines(["Payload-Oxum 22.2"])


class TestManifestEntry:
    def test_line(self) -> None:
        assert ManifestEntry(digest=DIGEST, path="data/do1").line() == f"{DIGEST} data/do1"

    def test_path_with_spaces(self) -> None:
        entry = ManifestEntry.from_line(f"{DIGEST} data/my table.csv")
        assert entry.path == "data/my table.csv"

    def test_rejects_non_md5_digest(self) -> None:
        with pytest.raises(ValidationError):
            ManifestEntry(digest="ABC", path="data/do1")

    def test_rejects_missing_path(self) -> None:
        with pytest.raises(ValueError):
            ManifestEntry.from_line(DIGEST)


class TestPidMapping:
    def test_line(self) -> None:
        mapping = PidMapping(identifier="urn:uuid:1", path="data/urn:uuid:1.rdf")
        assert mapping.line() == "urn:uuid:1 data/urn:uuid:1.rdf"
        assert PidMapping.from_line(mapping.line()) == mapping

    def test_rejects_empty_identifier(self) -> None:
        with pytest.raises(ValueError):
            PidMapping.from_line(" data/do1")

    def test_identifier_with_spaces(self) -> None:
        mapping = PidMapping.from_line("my data.csv data/my data.csv")
        assert mapping.identifier == "my data.csv"
        assert mapping.path == "data/my data.csv"

    def test_rejects_path_outside_payload(self) -> None:
        with pytest.raises(ValueError):
            PidMapping.from_line("do1 tags/do1")
