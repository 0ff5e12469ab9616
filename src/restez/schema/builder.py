"""Programmatic authoring surface for schema trees.

:class:`SchemaBuilder` assembles a :class:`~restez.models.SchemaTree` from
nested ``with`` blocks.  It owns its scope stack: every :meth:`route` pushes
a scope and closing the block pops it and attaches the finished node to its
parent.  Nothing is global, but one builder must not be driven from several
threads at once, and the tree must be fully built before it is read.

Example::

    builder = SchemaBuilder("https://svc.com", api_key="K")
    with builder.route("forum"):
        builder.runtime_attr("token", lambda env: os.environ[env["var"]],
                             var="SVC_TOKEN")
        builder.endpoint("{thread_id}", "view_thread")
        builder.endpoint("{thread_id}/posts", "create_post", method="POST")
    tree = builder.build()
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional, Union

import pydantic

from restez.exceptions import AuthoringError
from restez.models import Attribute, HTTPMethod, SchemaNode, SchemaTree


@dataclass
class _Scope:
    """A route under construction."""

    segment: str
    attributes: list[Attribute] = field(default_factory=list)
    children: dict[str, SchemaNode] = field(default_factory=dict)

    def add_child(self, segment: str, node: SchemaNode) -> None:
        if segment in self.children:
            raise AuthoringError(
                f"Segment '{segment}' is declared twice under '{self.segment or '/'}'"
            )
        self.children[segment] = node

    def to_node(self) -> SchemaNode:
        return SchemaNode(attributes=tuple(self.attributes), children=dict(self.children))


class SchemaBuilder:
    """Build a schema tree with an explicit scope stack.

    Args:
        root_url: Base URL every endpoint path is joined onto.
        **attributes: Literal attributes declared on the root, inherited by
            every endpoint that does not override them.
    """

    def __init__(self, root_url: str, **attributes: Any) -> None:
        self._root_url = root_url
        root = _Scope(segment="")
        root.attributes.extend(Attribute.literal(k, v) for k, v in attributes.items())
        self._stack: list[_Scope] = [root]

    @property
    def _current(self) -> _Scope:
        return self._stack[-1]

    @property
    def scope(self) -> tuple[str, ...]:
        """Segments of the routes currently open, outermost first."""
        return tuple(s.segment for s in self._stack[1:])

    @contextmanager
    def route(self, segment: str, **attributes: Any) -> Iterator[SchemaBuilder]:
        """Open a route; declarations inside the block belong to it.

        Args:
            segment: Path segment the route contributes (may contain
                placeholders such as ``{user_id}``).
            **attributes: Literal attributes for this route.
        """
        scope = _Scope(segment=segment)
        scope.attributes.extend(Attribute.literal(k, v) for k, v in attributes.items())
        self._stack.append(scope)
        try:
            yield self
        finally:
            self._stack.pop()
        self._current.add_child(segment, scope.to_node())

    def endpoint(
        self,
        segment: str,
        endpoint_id: str,
        method: Union[HTTPMethod, str] = HTTPMethod.GET,
        **attributes: Any,
    ) -> None:
        """Declare an endpoint leaf under the current route.

        Args:
            segment: Path segment of the endpoint (``""`` for the route's
                own path).
            endpoint_id: Name of the generated client callable.
            method: Request method.
            **attributes: Literal attributes for this endpoint only.
        """
        try:
            node = SchemaNode(
                endpoint_id=endpoint_id,
                method=method,
                attributes=tuple(Attribute.literal(k, v) for k, v in attributes.items()),
            )
        except pydantic.ValidationError as exc:
            raise AuthoringError(f"Invalid endpoint '{endpoint_id}': {exc}") from exc
        self._current.add_child(segment, node)

    def attribute(self, key: str, value: Any) -> None:
        """Declare a literal attribute on the current route."""
        self._current.attributes.append(Attribute.literal(key, value))

    def runtime_attr(
        self,
        key: str,
        expression: Callable[[dict[str, Any]], Any],
        **bindings: Any,
    ) -> None:
        """Declare an attribute computed at every resolution.

        The expression receives the environment captured *now*: the open
        route ``scope`` plus the *bindings* mapping.  Later declarations on the
        builder do not leak into it.

        Args:
            key: Attribute key.
            expression: Called with the captured environment mapping.
            **bindings: Extra names made available to the expression.
        """
        captured = {"scope": self.scope, **bindings}
        self._current.attributes.append(
            Attribute.deferred(key, expression, environment=lambda: dict(captured))
        )

    def build(self, root_url: Optional[str] = None) -> SchemaTree:
        """Return the immutable tree built so far.

        Args:
            root_url: Optional replacement for the constructor's root URL.

        Raises:
            AuthoringError: If called while a route block is still open.
        """
        if len(self._stack) != 1:
            raise AuthoringError(
                f"Cannot build schema inside open route '/{'/'.join(self.scope)}'"
            )
        return SchemaTree(root_url=root_url or self._root_url, root=self._current.to_node())
