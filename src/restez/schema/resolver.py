"""Evaluate the deferred attributes of flattened endpoint definitions.

Every :class:`~restez.models.Attribute` holds two callables: an environment
producer and an expression.  Resolution calls the environment first, then
the expression within it, and writes the result back under the same key.
No key is added or dropped.

Resolution is deliberately *not* cached.  Deferred values may read mutable
state such as environment variables, so each call to :func:`resolve_all`
re-evaluates everything.  Callers that need one consistent view for the
duration of an operation should resolve once and reuse the result.

A failure in any attribute aborts the whole :func:`resolve_all` call with a
:class:`~restez.exceptions.ResolutionError` tagged with the endpoint id and
attribute key; a broken endpoint is never silently omitted.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from restez.exceptions import ResolutionError
from restez.models import EndpointDefinition, ResolvedEndpoint

logger = logging.getLogger(__name__)


def resolve(definition: EndpointDefinition) -> ResolvedEndpoint:
    """Evaluate every attribute of *definition*.

    Args:
        definition: An unresolved definition, as produced by
            :func:`~restez.schema.flattener.flatten`.

    Returns:
        A :class:`~restez.models.ResolvedEndpoint` with the same id, path
        template, method and attribute keys.

    Raises:
        ResolutionError: If an environment or expression callable raises.
            The original exception is chained as ``__cause__``.
    """
    values: dict[str, Any] = {}
    for key, attribute in definition.attributes.items():
        try:
            values[key] = attribute.evaluate()
        except Exception as exc:
            raise ResolutionError(definition.id, key, exc) from exc

    return ResolvedEndpoint(
        id=definition.id,
        path_template=definition.path_template,
        method=definition.method,
        attributes=values,
    )


def resolve_all(definitions: Iterable[EndpointDefinition]) -> list[ResolvedEndpoint]:
    """Resolve every definition, failing as a whole on the first error.

    Args:
        definitions: Unresolved definitions, typically the cached output of
            :func:`~restez.schema.flattener.flatten`.

    Returns:
        Resolved endpoints in the same order.

    Raises:
        ResolutionError: On the first attribute that fails to evaluate.
    """
    resolved = [resolve(definition) for definition in definitions]
    logger.debug("Resolved %d endpoint definition(s)", len(resolved))
    return resolved
