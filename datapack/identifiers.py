"""Identifier generation for packages, resource maps and blank nodes."""

import uuid
from typing import Callable

BLANK_NODE_PREFIX = "_:"
UUID_URN_PREFIX = "urn:uuid:"

IdFactory = Callable[[], str]


def new_id() -> str:
    """Return a globally unique identifier of the form ``urn:uuid:<uuid4>``."""
    return f"{UUID_URN_PREFIX}{uuid.uuid4()}"


def new_blank_node() -> str:
    """Return a fresh blank node token, e.g. ``_:b3f0c...``.

    The label always starts with a letter so it is a valid XML NCName when
    written as ``rdf:nodeID``.
    """
    return f"{BLANK_NODE_PREFIX}b{uuid.uuid4().hex}"


def is_blank_node(value: str) -> bool:
    return value.startswith(BLANK_NODE_PREFIX)


def blank_node_label(value: str) -> str:
    """Strip the reserved prefix from a blank node token."""
    if is_blank_node(value):
        return value[len(BLANK_NODE_PREFIX):]
    return value
