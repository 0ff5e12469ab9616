"""Schema pipeline -- author, load, flatten, and resolve endpoint trees.

This sub-package covers everything between an API description and a
resolved endpoint table:

Typical usage::

    from restez.schema import compile_schema, load_schema

    schema = compile_schema(load_schema("forum.yaml"))
    for endpoint in schema.materialize():
        print(endpoint.id, endpoint.path_template)

Sub-modules:

* :mod:`~restez.schema.builder` -- :class:`SchemaBuilder`, the in-code
  authoring surface.
* :mod:`~restez.schema.loader` -- Build trees from JSON/YAML documents read
  from a file, URL, or stdin.
* :mod:`~restez.schema.flattener` -- Depth-first flattening with attribute
  inheritance and path joining.
* :mod:`~restez.schema.resolver` -- Evaluation of deferred attribute values.
* :mod:`~restez.schema.compiled` -- :class:`CompiledSchema`, which caches the
  flattened table and resolves afresh on every materialization.
"""

from restez.schema.builder import SchemaBuilder
from restez.schema.compiled import CompiledSchema, compile_schema
from restez.schema.flattener import flatten, join_path
from restez.schema.loader import build_tree, load_schema
from restez.schema.resolver import resolve, resolve_all

__all__ = [
    "SchemaBuilder",
    "CompiledSchema",
    "compile_schema",
    "flatten",
    "join_path",
    "build_tree",
    "load_schema",
    "resolve",
    "resolve_all",
]
