"""Tests for resource map graph construction and serialization.

This module verifies:
- The ORE aggregation pattern (map, aggregation, aggregated members)
- Identifier resolution with and without a resolve URI
- Mapping of typed triples to URIs, blank nodes and literals
- Every supported syntax renders deterministically
- Different syntaxes describe the same graph
- Unsupported syntaxes fail without writing output
"""

import json
import logging
import os
import subprocess
import sys
from pathlib import Path

import pytest
from rdflib import BNode, Graph, Literal, URIRef
from rdflib.compare import isomorphic

from datapack.errors import SerializationError, UnsupportedSyntaxError, ValidationError
from datapack.member import Member
from datapack.package import DataPackage
from datapack.relationship import Triple
from datapack.resource_map import SYNTAXES, build_graph, resolve_identifier, serialize, serialize_to_file
from datapack.vocab import (
    AGGREGATES,
    AGGREGATION,
    DATAONE_RESOLVE_URI,
    DESCRIBES,
    IDENTIFIER,
    IS_AGGREGATED_BY,
    RDF_TYPE,
    RESOURCE_MAP,
    WAS_DERIVED_FROM,
    XSD_STRING,
)

MAP_ID = "urn:uuid:6f1e0a5c-0000-4000-8000-000000000001"


@pytest.fixture
def provenance() -> list[Triple]:
    return [
        Triple(subject="do2", predicate=WAS_DERIVED_FROM, object="do1"),
        Triple(subject="_:bexec", predicate="http://www.w3.org/ns/prov#used", object="do1"),
        Triple(
            subject="do1",
            predicate="http://purl.org/dc/terms/title",
            object="Raw table",
            object_type="literal",
        ),
        Triple(
            subject="do1",
            predicate="http://example.org/terms/rows",
            object="2",
            object_type="literal",
            data_type_uri="http://www.w3.org/2001/XMLSchema#integer",
        ),
    ]


@pytest.fixture
def resolved_graph(provenance: list[Triple]) -> Graph:
    return build_graph(MAP_ID, provenance, ["do1", "do2"], resolve_uri=DATAONE_RESOLVE_URI)


class TestResolveIdentifier:
    def test_bare_without_resolve_uri(self) -> None:
        assert resolve_identifier("do1") == "do1"
        assert resolve_identifier("do1", "") == "do1"

    def test_prefix_and_percent_encoding(self) -> None:
        assert resolve_identifier("urn:uuid:1", DATAONE_RESOLVE_URI + "/") == f"{DATAONE_RESOLVE_URI}/urn%3Auuid%3A1"


class TestBuildGraph:
    """build_graph() encodes the OAI-ORE aggregation plus provenance."""

    def test_aggregation_pattern(self) -> None:
        graph = build_graph(MAP_ID, [], ["do1", "do2"])
        map_node = URIRef(MAP_ID)
        aggregation = URIRef(MAP_ID + "#aggregation")

        assert (map_node, URIRef(RDF_TYPE), URIRef(RESOURCE_MAP)) in graph
        assert (map_node, URIRef(DESCRIBES), aggregation) in graph
        assert (map_node, URIRef(IDENTIFIER), Literal(MAP_ID, datatype=URIRef(XSD_STRING))) in graph
        assert (aggregation, URIRef(RDF_TYPE), URIRef(AGGREGATION)) in graph
        for member in ("do1", "do2"):
            assert (aggregation, URIRef(AGGREGATES), URIRef(member)) in graph
            assert (URIRef(member), URIRef(IS_AGGREGATED_BY), aggregation) in graph
        assert len(graph) == 5 + 3 * 2

    def test_members_are_resolved(self, resolved_graph: Graph) -> None:
        aggregation = URIRef(f"{DATAONE_RESOLVE_URI}/urn%3Auuid%3A6f1e0a5c-0000-4000-8000-000000000001#aggregation")
        assert (aggregation, URIRef(AGGREGATES), URIRef(f"{DATAONE_RESOLVE_URI}/do1")) in resolved_graph

    def test_provenance_terms(self, resolved_graph: Graph) -> None:
        do1 = URIRef(f"{DATAONE_RESOLVE_URI}/do1")
        do2 = URIRef(f"{DATAONE_RESOLVE_URI}/do2")

        assert (do2, URIRef(WAS_DERIVED_FROM), do1) in resolved_graph
        assert (BNode("bexec"), URIRef("http://www.w3.org/ns/prov#used"), do1) in resolved_graph
        assert (do1, URIRef("http://purl.org/dc/terms/title"), Literal("Raw table")) in resolved_graph
        rows = resolved_graph.value(do1, URIRef("http://example.org/terms/rows"))
        assert rows.datatype == URIRef("http://www.w3.org/2001/XMLSchema#integer")

    def test_non_member_uris_are_not_resolved(self) -> None:
        triple = Triple(subject="do1", predicate=WAS_DERIVED_FROM, object="https://example.org/source")
        graph = build_graph(MAP_ID, [triple], ["do1"], resolve_uri=DATAONE_RESOLVE_URI)
        assert (URIRef(f"{DATAONE_RESOLVE_URI}/do1"), URIRef(WAS_DERIVED_FROM), URIRef("https://example.org/source")) in graph


class TestSerialize:
    """serialize() renders every supported syntax deterministically."""

    @pytest.mark.parametrize("syntax_name", sorted(SYNTAXES))
    def test_deterministic(self, resolved_graph: Graph, syntax_name: str) -> None:
        first = serialize(resolved_graph, syntax_name)
        second = serialize(resolved_graph, syntax_name)
        assert first
        assert first == second

    @pytest.mark.parametrize("syntax_name", sorted(SYNTAXES))
    def test_independent_of_insertion_order(self, provenance: list[Triple], syntax_name: str) -> None:
        forward = build_graph(MAP_ID, provenance, ["do1", "do2"], resolve_uri=DATAONE_RESOLVE_URI)
        backward = build_graph(MAP_ID, list(reversed(provenance)), ["do2", "do1"], resolve_uri=DATAONE_RESOLVE_URI)
        assert serialize(forward, syntax_name) == serialize(backward, syntax_name)

    def test_default_is_rdfxml(self, resolved_graph: Graph) -> None:
        text = serialize(resolved_graph)
        assert text.startswith("<?xml")
        assert "rdf:RDF" in text

    def test_rdfxml_and_ntriples_describe_same_graph(self, resolved_graph: Graph) -> None:
        from_xml = Graph().parse(data=serialize(resolved_graph, "rdfxml"), format="xml")
        from_nt = Graph().parse(data=serialize(resolved_graph, "ntriples"), format="nt")

        assert len(from_xml) == len(resolved_graph)
        assert isomorphic(from_xml, from_nt)
        assert isomorphic(from_nt, resolved_graph)

    def test_turtle_round_trip(self, resolved_graph: Graph) -> None:
        from_turtle = Graph().parse(data=serialize(resolved_graph, "turtle"), format="turtle")
        assert isomorphic(from_turtle, resolved_graph)

    def test_ntriples_lines_are_sorted(self, resolved_graph: Graph) -> None:
        lines = serialize(resolved_graph, "ntriples").splitlines()
        assert lines == sorted(lines)
        assert len(lines) == len(resolved_graph)

    def test_rdf_json(self, resolved_graph: Graph) -> None:
        document = json.loads(serialize(resolved_graph, "json"))
        do2 = f"{DATAONE_RESOLVE_URI}/do2"

        assert document[do2][WAS_DERIVED_FROM] == [{"type": "uri", "value": f"{DATAONE_RESOLVE_URI}/do1"}]
        assert "_:bexec" in document
        assert document["_:bexec"]["http://www.w3.org/ns/prov#used"][0]["type"] == "uri"

    def test_dot(self, resolved_graph: Graph) -> None:
        text = serialize(resolved_graph, "dot")
        assert text.startswith("digraph {")
        assert text.rstrip().endswith("}")

    def test_custom_namespace_prefix(self, resolved_graph: Graph) -> None:
        text = serialize(resolved_graph, "turtle", namespaces=[("http://example.org/terms/", "ex")])
        assert "@prefix ex: <http://example.org/terms/> ." in text
        assert "ex:rows" in text

    def test_default_prefixes(self, resolved_graph: Graph) -> None:
        text = serialize(resolved_graph, "turtle")
        assert "@prefix ore: <http://www.openarchives.org/ore/terms/> ." in text
        assert "@prefix prov: <http://www.w3.org/ns/prov#> ." in text


class TestSerializeErrors:
    """Unsupported or contradictory syntax requests fail before producing output."""

    def test_unsupported_syntax(self, resolved_graph: Graph) -> None:
        with pytest.raises(UnsupportedSyntaxError):
            serialize(resolved_graph, "nope")

    def test_unsupported_syntax_is_validation_and_serialization_error(self, resolved_graph: Graph) -> None:
        with pytest.raises(ValidationError):
            serialize(resolved_graph, "nope")
        with pytest.raises(SerializationError):
            serialize(resolved_graph, "nope")

    def test_unsupported_syntax_writes_nothing(self, resolved_graph: Graph, tmp_path: Path) -> None:
        destination = tmp_path / "map.out"
        with pytest.raises(UnsupportedSyntaxError):
            serialize_to_file(resolved_graph, destination, "nope")
        assert not destination.exists()

    def test_contradicting_syntax_uri(self, resolved_graph: Graph) -> None:
        with pytest.raises(UnsupportedSyntaxError):
            serialize(resolved_graph, "rdfxml", syntax_uri="http://www.w3.org/ns/formats/Turtle")

    def test_matching_syntax_uri(self, resolved_graph: Graph) -> None:
        text = serialize(resolved_graph, "turtle", syntax_uri="http://www.w3.org/ns/formats/Turtle")
        assert "@prefix" in text

    def test_mime_type_mismatch_is_logged(self, resolved_graph: Graph, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            text = serialize(resolved_graph, "turtle", mime_type="application/rdf+xml")
        assert "@prefix" in text
        assert "does not match" in caplog.text


class TestSerializePackage:
    """DataPackage.serialize_package() renders the package's own resource map."""

    def test_uses_package_id_as_map_id(self, config) -> None:
        pkg = DataPackage("urn:uuid:pkg-1", config=config)
        pkg.add_member(Member.from_bytes("do1", b"1"))

        graph = pkg.build_resource_map()
        assert (URIRef("urn:uuid:pkg-1"), URIRef(RDF_TYPE), URIRef(RESOURCE_MAP)) in graph
        assert "<urn:uuid:pkg-1>" in pkg.serialize_package(syntax_name="ntriples")

    def test_generates_map_id_without_package_id(self, csv_package: DataPackage) -> None:
        graph = csv_package.build_resource_map()
        map_nodes = list(graph.subjects(URIRef(RDF_TYPE), URIRef(RESOURCE_MAP)))
        assert len(map_nodes) == 1
        assert str(map_nodes[0]).startswith("urn:uuid:")

    def test_writes_destination(self, csv_package: DataPackage, tmp_path: Path) -> None:
        destination = tmp_path / "map.ttl"
        text = csv_package.serialize_package(destination, map_id="urn:uuid:map", syntax_name="turtle")
        assert destination.read_text(encoding="utf-8") == text

    def test_same_package_renders_identically(self, csv_package: DataPackage) -> None:
        first = csv_package.serialize_package(map_id="urn:uuid:map")
        second = csv_package.serialize_package(map_id="urn:uuid:map")
        assert first == second

    def test_unsupported_syntax_writes_nothing(self, csv_package: DataPackage, tmp_path: Path) -> None:
        destination = tmp_path / "map.out"
        with pytest.raises(UnsupportedSyntaxError):
            csv_package.serialize_package(destination, syntax_name="nope")
        assert not destination.exists()


class TestUnsafeIdentifiers:
    """Identifiers and values that are not valid IRIs still render."""

    def test_bare_member_is_percent_encoded(self) -> None:
        graph = build_graph(MAP_ID, [], ["my data.csv"])
        aggregation = URIRef(MAP_ID + "#aggregation")

        assert (aggregation, URIRef(AGGREGATES), URIRef("my%20data.csv")) in graph
        assert (URIRef("my%20data.csv"), URIRef(IDENTIFIER), Literal("my data.csv", datatype=URIRef(XSD_STRING))) in graph

    def test_iri_safe_identifiers_are_unchanged(self) -> None:
        assert resolve_identifier("do1") == "do1"
        assert resolve_identifier("urn:uuid:1") == "urn:uuid:1"
        assert resolve_identifier("my data.csv") == "my%20data.csv"
        assert resolve_identifier("a<b>") == "a%3Cb%3E"

    def test_resolved_member_is_percent_encoded(self) -> None:
        graph = build_graph(MAP_ID, [], ["my data.csv"], resolve_uri=DATAONE_RESOLVE_URI)
        assert (URIRef(f"{DATAONE_RESOLVE_URI}/my%20data.csv"), URIRef(IS_AGGREGATED_BY), None) in graph

    def test_untyped_text_object_becomes_literal(self) -> None:
        title = "http://purl.org/dc/terms/title"
        triple = Triple(subject="do1", predicate=title, object="a plain title")
        graph = build_graph(MAP_ID, [triple], ["do1"])

        assert graph.value(URIRef("do1"), URIRef(title)) == Literal("a plain title")

    def test_uri_typed_object_is_percent_encoded(self) -> None:
        triple = Triple(subject="do1", predicate=WAS_DERIVED_FROM, object="raw file.csv", object_type="uri")
        graph = build_graph(MAP_ID, [triple], ["do1"])
        assert (URIRef("do1"), URIRef(WAS_DERIVED_FROM), URIRef("raw%20file.csv")) in graph

    @pytest.mark.parametrize("syntax_name", sorted(SYNTAXES))
    def test_every_syntax_renders(self, config, syntax_name: str) -> None:
        pkg = DataPackage(config=config)
        pkg.add_member(Member.from_bytes("my data.csv", b"1,2,3"))
        pkg.insert_relationship("my data.csv", ["a plain title"], "http://purl.org/dc/terms/title")

        text = pkg.serialize_package(map_id="urn:uuid:map", syntax_name=syntax_name)
        assert text
        if syntax_name != "dot":
            assert "my%20data.csv" in text

    def test_resolved_rendering_round_trips(self, config) -> None:
        pkg = DataPackage(config=config)
        pkg.add_member(Member.from_bytes("my data.csv", b"1,2,3"))
        pkg.insert_relationship("my data.csv", ["a plain title"], "http://purl.org/dc/terms/title")
        graph = pkg.build_resource_map(map_id="urn:uuid:map", resolve_uri=DATAONE_RESOLVE_URI)

        from_xml = Graph().parse(data=serialize(graph, "rdfxml"), format="xml")
        assert isomorphic(from_xml, graph)


# Renders one package in every syntax and prints a digest per syntax. Six
# custom predicates in distinct namespaces force generated ns1..ns6 prefixes.
RENDER_SCRIPT = """
import hashlib

from datapack.config import DataPackConfig
from datapack.member import Member
from datapack.package import DataPackage

pkg = DataPackage("urn:uuid:map-1", config=DataPackConfig())
pkg.add_member(Member.from_bytes("do1", b"1,2,3\\n4,5,6"))
pkg.add_member(Member.from_bytes("do2", b"7,8,9\\n4,10,11"))
pkg.record_derivation("do2", ["do2"])
for i in range(6):
    pkg.insert_relationship("do1", ["do2"], f"http://example.org/terms{i}/relatedTo")
pkg.insert_relationship("_:bexec", ["do1"], "http://www.w3.org/ns/prov#used")
for name in ("rdfxml", "json", "ntriples", "turtle", "dot"):
    text = pkg.serialize_package(syntax_name=name)
    print(name, hashlib.md5(text.encode("utf-8")).hexdigest())
"""


class TestDeterminismAcrossProcesses:
    """Rendering does not depend on the interpreter's hash seed."""

    def _render(self, seed: int, cwd: Path) -> str:
        root = Path(__file__).resolve().parents[1]
        env = {**os.environ, "PYTHONHASHSEED": str(seed), "PYTHONPATH": str(root)}
        env.pop("DATAPACK_CONFIG", None)
        result = subprocess.run(
            [sys.executable, "-c", RENDER_SCRIPT],
            cwd=cwd,
            env=env,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout

    def test_same_output_for_every_hash_seed(self, tmp_path: Path) -> None:
        outputs = {self._render(seed, tmp_path) for seed in range(5)}

        assert len(outputs) == 1
        assert len(outputs.pop().splitlines()) == len(SYNTAXES)
