"""Client generator -- turn resolved endpoint tables into callables.

This sub-package is the last stage of the restez pipeline: it takes the
resolved endpoint table produced by
:meth:`~restez.schema.compiled.CompiledSchema.materialize` and builds a
:class:`~restez.generator.client.Client` whose functions validate their
parameters, interpolate the URL, and hand the call to a dispatch capability.

Typical usage::

    from restez.generator import generate_client

    client = generate_client(schema.materialize(), MyDispatcher())
    result = client.view_thread({"thread_id": 7})

Sub-modules:

* :mod:`~restez.generator.template` -- Placeholder extraction and URL
  interpolation with a pluggable placeholder syntax.
* :mod:`~restez.generator.client` -- The :class:`Dispatcher` interface,
  :class:`EndpointFunction`, :class:`Client`, and :func:`generate_client`.
"""

from restez.generator.client import Client, Dispatcher, EndpointFunction, generate_client
from restez.generator.template import interpolate, required_params

__all__ = [
    "Client",
    "Dispatcher",
    "EndpointFunction",
    "generate_client",
    "interpolate",
    "required_params",
]
