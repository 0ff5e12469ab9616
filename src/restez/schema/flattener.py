"""Flatten a schema tree into a table of endpoint definitions.

This is the first stage of the restez pipeline.  It walks a
:class:`~restez.models.SchemaTree` depth-first and emits one
:class:`~restez.models.EndpointDefinition` per endpoint leaf.

**Algorithm summary**

1. Start at the root with an empty inherited attribute mapping and the
   tree's ``root_url`` as the current path.
2. At every node, merge the node's own attributes over the inherited mapping.
   Node-local declarations win; within one node the last declaration of a
   key wins.  The merged mapping is what the node's children inherit.
3. An endpoint node emits a definition (id, joined path, method, merged
   attributes) and is not descended into.
4. A route node recurses into each child with the path extended by the
   child's segment, and emits nothing itself.

Attribute values stay deferred throughout; flattening never evaluates them.
Children are visited in insertion order, which makes the output
deterministic, but callers must not depend on the relative order of
endpoints from different branches.
"""

from __future__ import annotations

import logging
import re
from typing import Mapping

from restez.exceptions import AuthoringError
from restez.generator.client import check_endpoint_id
from restez.models import (
    RESERVED_ATTRIBUTE_KEYS,
    Attribute,
    EndpointDefinition,
    HTTPMethod,
    SchemaNode,
    SchemaTree,
)

logger = logging.getLogger(__name__)

_DUPLICATE_SEPARATORS_RE = re.compile(r"/{2,}")


def flatten(tree: SchemaTree) -> list[EndpointDefinition]:
    """Flatten *tree* into a list of unresolved endpoint definitions.

    Args:
        tree: The schema tree to flatten.

    Returns:
        One :class:`~restez.models.EndpointDefinition` per endpoint leaf.

    Raises:
        AuthoringError: If an endpoint id cannot name a client attribute
            (see :func:`~restez.generator.client.check_endpoint_id`), if two
            endpoints share an id, or if an attribute uses a reserved key.
            No partial table is returned.

    Example::

        defs = flatten(tree)
        # [EndpointDefinition(id='view_thread',
        #                     path_template='https://svc.com/forum/{thread_id}', ...)]
    """
    definitions: list[EndpointDefinition] = []
    _walk(tree.root, tree.root_url, {}, definitions)

    seen: dict[str, str] = {}
    for definition in definitions:
        if definition.id in seen:
            raise AuthoringError(
                f"Duplicate endpoint id '{definition.id}' "
                f"({seen[definition.id]} and {definition.path_template})"
            )
        seen[definition.id] = definition.path_template

    logger.debug("Flattened schema %s into %d endpoint(s)", tree.root_url, len(definitions))
    return definitions


def join_path(base: str, *segments: str) -> str:
    """Join *segments* onto *base* with exactly one ``/`` between each part.

    Leading and trailing separators of every segment are ignored and runs of
    separators inside a segment collapse to one.  The ``scheme://`` part of
    *base* is left intact.

    Example::

        >>> join_path("https://x.com", "a", "{id}")
        'https://x.com/a/{id}'
        >>> join_path("https://x.com/", "/a/", "//{id}")
        'https://x.com/a/{id}'
        >>> join_path("", "forum")
        '/forum'
    """
    parts = [
        _DUPLICATE_SEPARATORS_RE.sub("/", segment).strip("/")
        for segment in segments
    ]
    parts = [part for part in parts if part]

    scheme, sep, rest = base.partition("://")
    if sep:
        head = scheme + sep + _DUPLICATE_SEPARATORS_RE.sub("/", rest).rstrip("/")
    else:
        head = _DUPLICATE_SEPARATORS_RE.sub("/", base).rstrip("/")

    if not parts:
        return head or "/"
    return head + "/" + "/".join(parts)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def merge_attributes(
    inherited: Mapping[str, Attribute],
    own: tuple[Attribute, ...],
) -> dict[str, Attribute]:
    """Merge a node's *own* attributes over the *inherited* mapping.

    Same-keyed inherited entries are replaced, never combined.  The inherited
    mapping is not modified.
    """
    merged = dict(inherited)
    for attribute in own:
        if attribute.key in RESERVED_ATTRIBUTE_KEYS:
            raise AuthoringError(
                f"Attribute key '{attribute.key}' is reserved "
                f"(reserved keys: {', '.join(sorted(RESERVED_ATTRIBUTE_KEYS))})"
            )
        merged[attribute.key] = attribute
    return merged


def _walk(
    node: SchemaNode,
    path: str,
    inherited: Mapping[str, Attribute],
    acc: list[EndpointDefinition],
) -> None:
    attributes = merge_attributes(inherited, node.attributes)

    if node.is_endpoint:
        acc.append(
            EndpointDefinition(
                id=check_endpoint_id(node.endpoint_id, path),
                path_template=path,
                method=node.method or HTTPMethod.GET,
                attributes=attributes,
            )
        )
        return

    for segment, child in node.children.items():
        _walk(child, join_path(path, segment), attributes, acc)
