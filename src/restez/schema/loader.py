"""Load schema trees from JSON or YAML documents.

A schema document describes the same tree :class:`~restez.schema.builder.SchemaBuilder`
builds in code::

    root: https://svc.com
    attributes:
      api_key: {$env: SVC_API_KEY}
    routes:
      forum:
        attributes:
          section: community
        routes:
          "{thread_id}":
            endpoint: view_thread
          "{thread_id}/posts":
            endpoint: create_post
            method: POST

Every node may carry ``attributes`` and ``routes``; a node with an
``endpoint`` key is an endpoint leaf and may also set ``method``.

Attribute values are literals, or *source references* evaluated at
resolution time rather than at load time:

* ``{"$env": "NAME"}`` -- the environment variable ``NAME``; an optional
  sibling ``"default"`` is used when it is unset.
* ``{"$file": "PATH"}`` -- the stripped contents of ``PATH``.

The public functions are :func:`load_schema` (any source) and
:func:`build_tree` (an already parsed document).
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import httpx
import pydantic
import yaml

from restez.config import read_source
from restez.exceptions import AuthoringError, SchemaLoadError
from restez.models import Attribute, SchemaNode, SchemaTree

_NODE_KEYS = frozenset({"attributes", "routes", "endpoint", "method"})
_ROOT_KEYS = frozenset({"root", "attributes", "routes"})


def load_schema(source: str) -> SchemaTree:
    """Load a schema tree from URL, file path, or stdin ('-').

    Supports JSON and YAML formats.
    Auto-detects format from content/extension.

    Args:
        source: A URL (http/https), file path, or '-' for stdin.

    Returns:
        The schema tree described by the document.

    Raises:
        SchemaLoadError: If the source cannot be read or parsed.
        AuthoringError: If the document does not describe a valid tree.
    """
    if source == "-":
        document = _load_from_stdin()
    elif source.startswith(("http://", "https://")):
        document = _load_from_url(source)
    else:
        document = _load_from_file(source)
    return build_tree(document)


def build_tree(document: Any) -> SchemaTree:
    """Convert a parsed schema document into a :class:`~restez.models.SchemaTree`.

    Raises:
        AuthoringError: On any structural problem, with the location of
            the offending node in the message.
    """
    if not isinstance(document, dict):
        raise AuthoringError("Schema document must be a mapping")
    _check_keys(document, _ROOT_KEYS, "/")

    root_url = document.get("root")
    if not isinstance(root_url, str) or not root_url:
        raise AuthoringError("Schema document needs a non-empty 'root' URL")

    root = _build_node(
        {k: v for k, v in document.items() if k != "root"}, location="/"
    )
    return SchemaTree(root_url=root_url, root=root)


# ---------------------------------------------------------------------------
# Document -> tree
# ---------------------------------------------------------------------------


def _build_node(raw: Any, location: str) -> SchemaNode:
    if not isinstance(raw, dict):
        raise AuthoringError(f"Node at {location} must be a mapping")
    _check_keys(raw, _NODE_KEYS, location)

    attributes = _build_attributes(raw.get("attributes") or {}, location)

    routes = raw.get("routes") or {}
    if not isinstance(routes, dict):
        raise AuthoringError(f"'routes' at {location} must be a mapping")
    children = {
        str(segment): _build_node(child, f"{location.rstrip('/')}/{segment}")
        for segment, child in routes.items()
    }

    endpoint_id = raw.get("endpoint")
    if endpoint_id is not None and not isinstance(endpoint_id, str):
        raise AuthoringError(f"'endpoint' at {location} must be a string")
    if endpoint_id is None and "method" in raw:
        raise AuthoringError(f"'method' at {location} is only valid on endpoints")

    try:
        return SchemaNode(
            attributes=attributes,
            children=children,
            endpoint_id=endpoint_id,
            method=raw.get("method"),
        )
    except pydantic.ValidationError as exc:
        raise AuthoringError(f"Invalid node at {location}: {exc}") from exc


def _build_attributes(raw: Any, location: str) -> tuple[Attribute, ...]:
    if not isinstance(raw, dict):
        raise AuthoringError(f"'attributes' at {location} must be a mapping")
    return tuple(_build_attribute(str(key), value, location) for key, value in raw.items())


def _build_attribute(key: str, value: Any, location: str) -> Attribute:
    """Turn one document entry into an attribute, deferring source references."""
    if isinstance(value, dict) and "$env" in value:
        environment: dict[str, Any] = {"kind": "env", "name": str(value["$env"])}
        if "default" in value:
            environment["default"] = value["default"]
        return Attribute.deferred(key, read_source, environment=lambda: dict(environment))

    if isinstance(value, dict) and "$file" in value:
        path = str(value["$file"])
        if not path:
            raise AuthoringError(f"Empty $file reference for '{key}' at {location}")
        return Attribute.deferred(
            key, read_source, environment=lambda: {"kind": "file", "path": path}
        )

    return Attribute.literal(key, value)


def _check_keys(raw: dict[str, Any], allowed: frozenset[str], location: str) -> None:
    unknown = sorted(str(k) for k in raw if k not in allowed)
    if unknown:
        raise AuthoringError(
            f"Unknown key(s) at {location}: {', '.join(unknown)} "
            f"(allowed: {', '.join(sorted(allowed))})"
        )


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


def _load_from_stdin() -> Any:
    """Read a schema document from stdin."""
    try:
        content = sys.stdin.read()
    except Exception as exc:
        raise SchemaLoadError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise SchemaLoadError("No input received from stdin")

    return _parse_content(content, hint="stdin")


def _load_from_url(url: str) -> Any:
    """Fetch a schema document over HTTP(S)."""
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SchemaLoadError(
            f"HTTP {exc.response.status_code} fetching schema from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise SchemaLoadError(f"Failed to fetch schema from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"

    return _parse_content(response.text, hint=hint)


def _load_from_file(path: str) -> Any:
    """Read a schema document from a local ``.json``, ``.yaml`` or ``.yml`` file."""
    file_path = Path(path)
    if not file_path.is_file():
        raise SchemaLoadError(f"Schema file not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SchemaLoadError(f"Failed to read schema file {path}: {exc}") from exc

    if not content.strip():
        raise SchemaLoadError(f"Schema file is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"

    return _parse_content(content, hint=hint)


def _parse_content(content: str, hint: str = "") -> Any:
    """Parse *content* as JSON or YAML.

    With a ``json``/``yaml`` hint only that format is tried; otherwise JSON
    is tried first, then YAML (a superset).
    """
    if hint == "json":
        try:
            return json.loads(content)
        except json.JSONDecodeError as exc:
            raise SchemaLoadError(f"Invalid JSON: {exc}") from exc

    if hint != "yaml":
        try:
            return json.loads(content)
        except json.JSONDecodeError:
            pass

    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise SchemaLoadError(f"Invalid YAML: {exc}") from exc
