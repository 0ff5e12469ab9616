"""A compiled schema: flatten once, resolve on every materialization.

:func:`compile_schema` is the usual entry point once a tree exists::

    schema = compile_schema(load_schema("forum.yaml"))
    schema.endpoints           # flattened, cached, still deferred
    schema.materialize()       # resolved now, re-evaluated on every call
    client = schema.client(HttpxDispatcher())

Flattening happens eagerly so that authoring errors surface at compile
time.  Resolution is never cached: a deferred value reading an environment
variable sees the variable's value at each :meth:`CompiledSchema.materialize`
call, not at compile time.
"""

from __future__ import annotations

from typing import Any, Optional

from restez.generator.client import Client, Dispatcher, generate_client
from restez.models import EndpointDefinition, ResolvedEndpoint, SchemaTree
from restez.schema.flattener import flatten
from restez.schema.resolver import resolve, resolve_all


class CompiledSchema:
    """A schema tree together with its flattened endpoint table.

    Args:
        tree: The immutable tree to compile.

    Raises:
        AuthoringError: If the tree is malformed.
    """

    def __init__(self, tree: SchemaTree) -> None:
        self._tree = tree
        self._endpoints = tuple(flatten(tree))
        self._by_id = {definition.id: definition for definition in self._endpoints}

    @property
    def tree(self) -> SchemaTree:
        return self._tree

    @property
    def endpoints(self) -> tuple[EndpointDefinition, ...]:
        """The flattened, unresolved endpoint table."""
        return self._endpoints

    @property
    def ids(self) -> list[str]:
        return list(self._by_id)

    def endpoint(self, endpoint_id: str) -> EndpointDefinition:
        """Return the unresolved definition named *endpoint_id*.

        Raises:
            KeyError: If no endpoint has that id.
        """
        return self._by_id[endpoint_id]

    def resolve(self, endpoint_id: str) -> ResolvedEndpoint:
        """Resolve a single endpoint now."""
        return resolve(self.endpoint(endpoint_id))

    def materialize(self) -> list[ResolvedEndpoint]:
        """Resolve every endpoint now.

        Raises:
            ResolutionError: If any deferred attribute fails to evaluate.
        """
        return resolve_all(self._endpoints)

    def client(self, dispatcher: Optional[Dispatcher] = None, **options: Any) -> Client:
        """Materialize the schema and generate a client from the result.

        Args:
            dispatcher: The dispatch capability.
            **options: Forwarded to :func:`~restez.generator.client.generate_client`
                (``dispatch``, ``validator``, ``parameter_pattern``).
        """
        return generate_client(self.materialize(), dispatcher, **options)

    def __repr__(self) -> str:
        return f"CompiledSchema(root_url={self._tree.root_url!r}, endpoints={len(self._endpoints)})"


def compile_schema(tree: SchemaTree) -> CompiledSchema:
    """Flatten *tree* and return a :class:`CompiledSchema`."""
    return CompiledSchema(tree)
