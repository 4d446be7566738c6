"""OAI-ORE resource maps for data packages.

A resource map is an RDF graph that describes a package: a map node
``ore:describes`` an aggregation node, and the aggregation
``ore:aggregates`` every package member. Provenance triples recorded on the
package (CiTO documentation links, PROV derivations, ...) are merged into the
same graph.

Graphs are ``rdflib.Graph`` instances. Rendering is deterministic: the same
graph and the same parameters always produce byte-identical text, so
resource maps can be checksummed and compared.
"""

import io
import json
from pathlib import Path
from typing import Iterable, Optional, Sequence
from urllib.parse import quote

from pydantic import BaseModel, Field
from rdflib import BNode, Graph, Literal, URIRef
from rdflib.plugins.stores.memory import SimpleMemory
from rdflib.term import Node
from rdflib.tools.rdf2dot import rdf2dot

from datapack import vocab
from datapack.errors import SerializationError, UnsupportedSyntaxError
from datapack.identifiers import blank_node_label, is_blank_node
from datapack.logging import setup_logging
from datapack.relationship import NodeType, Triple

logger = setup_logging()

AGGREGATION_FRAGMENT = "#aggregation"


class RdfSyntax(BaseModel, frozen=True):
    """A supported resource map syntax."""

    name: str = Field(description="Short syntax name, e.g. 'rdfxml'.")
    mime_type: str = Field(description="Canonical media type of the rendered text.")
    syntax_uri: Optional[str] = Field(None, description="W3C format URI identifying the syntax, if one exists.")
    rdflib_format: Optional[str] = Field(None, description="rdflib serializer plugin; None for renderers implemented here.")


SYNTAXES: dict[str, RdfSyntax] = {
    s.name: s
    for s in (
        RdfSyntax(
            name="rdfxml",
            mime_type="application/rdf+xml",
            syntax_uri="http://www.w3.org/ns/formats/RDF_XML",
            rdflib_format="xml",
        ),
        RdfSyntax(name="json", mime_type="application/json", syntax_uri="http://www.w3.org/ns/formats/RDF_JSON"),
        RdfSyntax(
            name="ntriples",
            mime_type="application/n-triples",
            syntax_uri="http://www.w3.org/ns/formats/N-Triples",
            rdflib_format="nt",
        ),
        RdfSyntax(
            name="turtle",
            mime_type="text/turtle",
            syntax_uri="http://www.w3.org/ns/formats/Turtle",
            rdflib_format="turtle",
        ),
        RdfSyntax(name="dot", mime_type="text/x-graphviz"),
    )
}

DEFAULT_SYNTAX = "rdfxml"


# Characters rdflib refuses to write inside an IRI
IRI_UNSAFE_CHARS = frozenset('<>" {}|\\^`')
# Reserved and unreserved characters kept as-is when escaping an identifier
IRI_SAFE = "!#$%&'()*+,-./:;=?@[]_~"


def is_iri_safe(value: str) -> bool:
    return bool(value) and not any(c in IRI_UNSAFE_CHARS or ord(c) < 0x20 for c in value)


def to_iri(value: str) -> str:
    """Percent-encodes ``value`` if it contains characters not allowed in an IRI.

    IRI-safe values are returned unchanged, so ``do1`` stays ``do1`` while
    ``my data.csv`` becomes ``my%20data.csv``.
    """
    if is_iri_safe(value):
        return value
    return quote(value, safe=IRI_SAFE)


def resolve_identifier(identifier: str, resolve_uri: Optional[str] = None) -> str:
    """Turns a package identifier into a resolvable URI.

    The identifier is percent-encoded and appended to ``resolve_uri``. An
    empty or missing ``resolve_uri`` leaves the identifier bare, escaped only
    where it would not be a valid IRI.
    """
    if not resolve_uri:
        return to_iri(identifier)
    return f"{resolve_uri.rstrip('/')}/{quote(identifier, safe='')}"


def _to_term(
    value: str,
    node_type: Optional[NodeType],
    data_type_uri: Optional[str],
    member_ids: frozenset[str],
    resolve_uri: Optional[str],
    literal_fallback: bool = False,
) -> Node:
    """Maps one triple position onto an rdflib term.

    Untyped values are blank nodes when they carry the blank node prefix and
    URIs otherwise. With ``literal_fallback`` (object position) an untyped
    value that cannot be an IRI, such as ``"a plain title"``, becomes a plain
    literal. Only member identifiers are rewritten with ``resolve_uri``.
    """
    if node_type is None:
        if is_blank_node(value):
            node_type = NodeType.BLANK
        elif literal_fallback and value not in member_ids and not is_iri_safe(value):
            node_type = NodeType.LITERAL
        else:
            node_type = NodeType.URI
    if node_type == NodeType.BLANK:
        return BNode(blank_node_label(value))
    if node_type == NodeType.LITERAL:
        return Literal(value, datatype=URIRef(data_type_uri) if data_type_uri else None)
    if value in member_ids:
        return URIRef(resolve_identifier(value, resolve_uri))
    return URIRef(to_iri(value))


def build_graph(
    map_id: str,
    triples: Iterable[Triple],
    member_ids: Iterable[str],
    resolve_uri: Optional[str] = None,
) -> Graph:
    """Builds the resource map graph for a package.

    Args:
        map_id: Identifier of the resource map itself.
        triples: Provenance triples to merge into the map.
        member_ids: Identifiers of every aggregated package member.
        resolve_uri: Optional prefix that turns identifiers into resolvable
            URIs. Members are left as bare identifiers when it is empty.

    Returns:
        An rdflib Graph holding the ORE aggregation plus the provenance triples.
    """
    members = sorted(set(member_ids))
    member_set = frozenset(members)
    xsd_string = URIRef(vocab.XSD_STRING)

    graph = Graph(bind_namespaces="none")
    for prefix, namespace in vocab.DEFAULT_NAMESPACES.items():
        graph.bind(prefix, namespace)

    map_node = URIRef(resolve_identifier(map_id, resolve_uri))
    aggregation = URIRef(f"{map_node}{AGGREGATION_FRAGMENT}")

    graph.add((map_node, URIRef(vocab.RDF_TYPE), URIRef(vocab.RESOURCE_MAP)))
    graph.add((map_node, URIRef(vocab.DESCRIBES), aggregation))
    graph.add((map_node, URIRef(vocab.IDENTIFIER), Literal(map_id, datatype=xsd_string)))
    graph.add((aggregation, URIRef(vocab.RDF_TYPE), URIRef(vocab.AGGREGATION)))
    graph.add((aggregation, URIRef(vocab.IS_DESCRIBED_BY), map_node))

    for member_id in members:
        member_node = URIRef(resolve_identifier(member_id, resolve_uri))
        graph.add((aggregation, URIRef(vocab.AGGREGATES), member_node))
        graph.add((member_node, URIRef(vocab.IS_AGGREGATED_BY), aggregation))
        graph.add((member_node, URIRef(vocab.IDENTIFIER), Literal(member_id, datatype=xsd_string)))

    for triple in triples:
        subject = _to_term(triple.subject, triple.subject_type, None, member_set, resolve_uri)
        obj = _to_term(
            triple.object,
            triple.object_type,
            triple.data_type_uri,
            member_set,
            resolve_uri,
            literal_fallback=True,
        )
        graph.add((subject, URIRef(to_iri(triple.predicate)), obj))

    return graph


def _lookup_syntax(syntax_name: str, syntax_uri: Optional[str]) -> RdfSyntax:
    syntax = SYNTAXES.get(syntax_name)
    if syntax is None:
        raise UnsupportedSyntaxError(f"Unsupported resource map syntax {syntax_name!r}; expected one of {sorted(SYNTAXES)}")
    if syntax_uri:
        named = next((s for s in SYNTAXES.values() if s.syntax_uri == syntax_uri), None)
        if named is not None and named.name != syntax.name:
            raise UnsupportedSyntaxError(f"Syntax URI {syntax_uri!r} identifies {named.name!r}, not {syntax_name!r}")
    return syntax


def _term_sort_key(triple: tuple[Node, Node, Node]) -> tuple[str, str, str]:
    s, p, o = triple
    return (s.n3(), p.n3(), o.n3())


def _canonical_graph(graph: Graph, namespaces: Optional[Sequence[tuple[str, str]]]) -> Graph:
    """Copies ``graph`` in sorted triple order with the merged prefix table.

    The copy uses ``SimpleMemory``, whose indexes are plain dicts, so
    serializers walk subjects and predicates in the order they were added
    here rather than in hash order.
    """
    canonical = Graph(store=SimpleMemory(), bind_namespaces="none")
    for prefix, namespace in vocab.DEFAULT_NAMESPACES.items():
        canonical.bind(prefix, namespace)
    for namespace, prefix in namespaces or ():
        canonical.bind(prefix, namespace, override=True, replace=True)
    for triple in sorted(graph, key=_term_sort_key):
        canonical.add(triple)
    return canonical


def _bind_generated_prefixes(graph: Graph, strict: bool) -> None:
    """Binds ``ns1``, ``ns2``, ... for unbound predicate namespaces in sorted order.

    Serializers generate these prefixes themselves while iterating a set of
    predicates; binding them up front fixes the numbering.
    """
    manager = graph.namespace_manager
    compute = manager.compute_qname_strict if strict else manager.compute_qname
    for predicate in sorted(set(graph.predicates())):
        try:
            compute(predicate)
        except ValueError:
            # No prefix split exists; the serializer writes the full IRI or reports it.
            continue


def _json_node(term: Node) -> dict[str, str]:
    if isinstance(term, BNode):
        return {"type": "bnode", "value": term.n3()}
    if isinstance(term, Literal):
        node = {"type": "literal", "value": str(term)}
        if term.datatype is not None:
            node["datatype"] = str(term.datatype)
        if term.language:
            node["lang"] = term.language
        return node
    return {"type": "uri", "value": str(term)}


def _render_rdf_json(graph: Graph) -> str:
    """Renders RDF/JSON: ``{subject: {predicate: [object, ...]}}``."""
    document: dict[str, dict[str, list[dict[str, str]]]] = {}
    for s, p, o in graph:
        subject_key = s.n3() if isinstance(s, BNode) else str(s)
        document.setdefault(subject_key, {}).setdefault(str(p), []).append(_json_node(o))
    for predicates in document.values():
        for objects in predicates.values():
            objects.sort(key=lambda node: json.dumps(node, sort_keys=True))
    return json.dumps(document, indent=2, sort_keys=True) + "\n"


def _render_dot(graph: Graph) -> str:
    stream = io.StringIO()
    rdf2dot(graph, stream)
    return stream.getvalue()


def _render_ntriples(graph: Graph) -> str:
    lines = sorted(line for line in graph.serialize(format="nt").splitlines() if line.strip())
    return "\n".join(lines) + "\n" if lines else ""


def serialize(
    graph: Graph,
    syntax_name: str = DEFAULT_SYNTAX,
    mime_type: Optional[str] = None,
    namespaces: Optional[Sequence[tuple[str, str]]] = None,
    syntax_uri: Optional[str] = None,
) -> str:
    """Renders a resource map graph as text.

    Args:
        graph: The graph to render, usually from `build_graph`.
        syntax_name: One of "rdfxml" (default), "json", "ntriples", "turtle", "dot".
        mime_type: Media type the caller expects. A mismatch with the syntax's
            canonical type is logged and rendering continues.
        namespaces: (namespace IRI, prefix) pairs merged over the default
            prefix table, for syntaxes that declare prefixes.
        syntax_uri: Optional W3C format URI; it must agree with ``syntax_name``.

    Returns:
        The rendered text.

    Raises:
        UnsupportedSyntaxError: If the syntax is unknown or contradicts ``syntax_uri``.
        SerializationError: If the graph cannot be rendered in the syntax.
    """
    syntax = _lookup_syntax(syntax_name, syntax_uri)
    if mime_type and mime_type != syntax.mime_type:
        logger.warning(f"Requested mime type {mime_type!r} does not match {syntax.name!r} ({syntax.mime_type}); rendering {syntax.name}")

    try:
        canonical = _canonical_graph(graph, namespaces)
        if syntax.name == "json":
            return _render_rdf_json(canonical)
        if syntax.name == "ntriples":
            return _render_ntriples(canonical)
        _bind_generated_prefixes(canonical, strict=syntax.name == "rdfxml")
        if syntax.name == "dot":
            return _render_dot(canonical)
        return canonical.serialize(format=syntax.rdflib_format)
    except Exception as e:
        raise SerializationError(f"Failed to render resource map as {syntax.name}: {e}") from e


def serialize_to_file(
    graph: Graph,
    destination: Path,
    syntax_name: str = DEFAULT_SYNTAX,
    mime_type: Optional[str] = None,
    namespaces: Optional[Sequence[tuple[str, str]]] = None,
    syntax_uri: Optional[str] = None,
) -> Path:
    """Renders ``graph`` and writes it to ``destination``.

    Nothing is written unless rendering succeeds.
    """
    text = serialize(graph, syntax_name, mime_type=mime_type, namespaces=namespaces, syntax_uri=syntax_uri)
    destination = Path(destination)
    destination.write_text(text, encoding="utf-8")
    return destination
