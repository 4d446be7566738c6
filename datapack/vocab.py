"""Vocabulary IRIs used in resource maps and provenance relationships.

Predicates come from the Citation Typing Ontology (CiTO), W3C PROV, OAI-ORE
and DCMI Terms. ``DEFAULT_NAMESPACES`` is the canonical prefix table applied
to every rendered resource map before caller-supplied prefixes are merged.
"""

CITO = "http://purl.org/spar/cito/"
PROV = "http://www.w3.org/ns/prov#"
PROVONE = "http://purl.dataone.org/provone/2015/01/15/ontology#"
ORE = "http://www.openarchives.org/ore/terms/"
DCTERMS = "http://purl.org/dc/terms/"
DC = "http://purl.org/dc/elements/1.1/"
FOAF = "http://xmlns.com/foaf/0.1/"
RDF = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
RDFS = "http://www.w3.org/2000/01/rdf-schema#"
XSD = "http://www.w3.org/2001/XMLSchema#"

# CiTO
DOCUMENTS = CITO + "documents"
IS_DOCUMENTED_BY = CITO + "isDocumentedBy"

# PROV
WAS_DERIVED_FROM = PROV + "wasDerivedFrom"
USED = PROV + "used"
WAS_GENERATED_BY = PROV + "wasGeneratedBy"

# OAI-ORE
RESOURCE_MAP = ORE + "ResourceMap"
AGGREGATION = ORE + "Aggregation"
DESCRIBES = ORE + "describes"
IS_DESCRIBED_BY = ORE + "isDescribedBy"
AGGREGATES = ORE + "aggregates"
IS_AGGREGATED_BY = ORE + "isAggregatedBy"

IDENTIFIER = DCTERMS + "identifier"
RDF_TYPE = RDF + "type"
XSD_STRING = XSD + "string"

# Public resolve service of the DataONE coordinating nodes
DATAONE_RESOLVE_URI = "https://cn.dataone.org/cn/v2/resolve"

DEFAULT_NAMESPACES: dict[str, str] = {
    "rdf": RDF,
    "rdfs": RDFS,
    "xsd": XSD,
    "dc": DC,
    "dcterms": DCTERMS,
    "foaf": FOAF,
    "ore": ORE,
    "cito": CITO,
    "prov": PROV,
    "provone": PROVONE,
}
