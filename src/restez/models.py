"""Canonical Pydantic models shared across all restez modules.

This is the single source of truth for data shapes in the project. The models
fall into two groups:

**Schema models** -- the in-memory contract between the authoring surfaces
and the compile pipeline:
    :class:`HTTPMethod`, :class:`Attribute`, :class:`SchemaNode`,
    :class:`SchemaTree`, :class:`EndpointDefinition`, and
    :class:`ResolvedEndpoint`.

**Configuration models** -- read from ``./restez.json`` and the environment:
    :class:`RequestConfig` and :class:`Settings`.

Schema models are frozen: a tree is built once and then only read.
"""

from __future__ import annotations

import enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_PARAMETER_PATTERN = r"\{([^{}]+)\}"
"""Placeholder syntax matched in path templates; group 1 is the parameter name."""

RESERVED_ATTRIBUTE_KEYS = frozenset({"method", "path_template"})
"""Keys added to every endpoint's dispatch attributes; authors may not declare them."""


def _empty_environment() -> dict[str, Any]:
    return {}


def copy_containers(value: Any) -> Any:
    """Copy nested dicts, lists, tuples and sets; share every other value.

    Leaf objects are never copied, so locks, SSL contexts or HTTP clients
    held in an attribute pass through as the same object.
    """
    kind = type(value)
    if kind is dict:
        return {key: copy_containers(item) for key, item in value.items()}
    if kind is list:
        return [copy_containers(item) for item in value]
    if kind is tuple:
        return tuple(copy_containers(item) for item in value)
    if kind is set:
        return set(value)
    return value


# --- Schema models ---


class HTTPMethod(str, enum.Enum):
    """Request methods an endpoint may declare.

    Values are upper-case so they can be handed to a transport verbatim.
    """

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"


class Attribute(BaseModel):
    """A key bound to a deferred value.

    The value is a pair of callables held unevaluated until resolution:
    ``environment`` produces the binding context captured when the attribute
    was declared, and ``expression`` computes the value from that context.
    Neither is called during tree construction or flattening.

    Example::

        Attribute.literal("version", 2)
        Attribute.deferred("token", lambda env: os.environ[env["var"]],
                           environment=lambda: {"var": "SVC_TOKEN"})
    """

    model_config = ConfigDict(frozen=True)

    key: str
    expression: Callable[[dict[str, Any]], Any]
    environment: Callable[[], dict[str, Any]] = _empty_environment

    @classmethod
    def literal(cls, key: str, value: Any) -> Attribute:
        """Wrap a plain value.

        Each evaluation returns fresh copies of any nested containers; other
        objects are returned as they are.
        """
        return cls(key=key, expression=lambda _env: copy_containers(value))

    @classmethod
    def deferred(
        cls,
        key: str,
        expression: Callable[[dict[str, Any]], Any],
        environment: Optional[Callable[[], dict[str, Any]]] = None,
    ) -> Attribute:
        return cls(
            key=key,
            expression=expression,
            environment=environment or _empty_environment,
        )

    def evaluate(self) -> Any:
        """Evaluate the environment, then the expression within it."""
        return self.expression(self.environment())


class SchemaNode(BaseModel):
    """A route segment or an endpoint leaf of the schema tree.

    A node with ``endpoint_id`` set is an *endpoint*; anything below it is
    ignored by flattening.  Otherwise it is a *route*: a pure grouping node
    contributing a path segment and attributes.
    """

    model_config = ConfigDict(frozen=True)

    attributes: tuple[Attribute, ...] = ()
    children: dict[str, SchemaNode] = Field(default_factory=dict)
    endpoint_id: Optional[str] = None
    method: Optional[HTTPMethod] = None

    @field_validator("method", mode="before")
    @classmethod
    def _normalise_method(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value

    @property
    def is_endpoint(self) -> bool:
        return self.endpoint_id is not None


class SchemaTree(BaseModel):
    """A root URL plus the root node every path is joined onto."""

    model_config = ConfigDict(frozen=True)

    root_url: str
    root: SchemaNode = Field(default_factory=SchemaNode)


class EndpointDefinition(BaseModel):
    """A flattened endpoint whose attributes are still deferred.

    Produced by :func:`~restez.schema.flattener.flatten`.  ``attributes``
    already reflects inheritance: the closest declaration of each key wins.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    path_template: str
    method: HTTPMethod = HTTPMethod.GET
    attributes: dict[str, Attribute] = Field(default_factory=dict)


class ResolvedEndpoint(BaseModel):
    """An :class:`EndpointDefinition` with every attribute evaluated."""

    model_config = ConfigDict(frozen=True)

    id: str
    path_template: str
    method: HTTPMethod = HTTPMethod.GET
    attributes: dict[str, Any] = Field(default_factory=dict)

    def dispatch_attributes(self) -> dict[str, Any]:
        """Attributes as handed to a dispatch capability.

        Adds the reserved ``method`` and ``path_template`` keys to a copy of
        the resolved attributes.  Nested containers are copied too, so a
        dispatcher may mutate what it receives.
        """
        merged = copy_containers(self.attributes)
        merged["method"] = self.method.value
        merged["path_template"] = self.path_template
        return merged


# --- Configuration models ---


class RequestConfig(BaseModel):
    """HTTP request settings used by :class:`~restez.transport.http.HttpxDispatcher`."""

    timeout: float = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(default=3, ge=0, description="Max retry attempts")


class Settings(BaseModel):
    """Effective settings after precedence resolution.

    See :func:`~restez.config.resolve_settings` for the full precedence chain.
    """

    parameter_pattern: str = Field(
        default=DEFAULT_PARAMETER_PATTERN,
        description="Regex matching path placeholders; group 1 is the name",
    )
    base_url: Optional[str] = Field(
        default=None, description="Override the schema's root URL"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
