"""restez -- Declare an HTTP API as a tree, get a validated client back.

An API is described once as a *schema tree*: nested route segments carrying
attributes that endpoints inherit, with endpoint leaves naming the callables
to generate.  restez flattens the tree, resolves deferred attribute values,
and builds a client whose functions check their parameters, interpolate the
URL, and hand the call to an application-supplied dispatch capability.

Typical usage::

    from restez import SchemaBuilder, compile_schema
    from restez.transport import HttpxDispatcher

    builder = SchemaBuilder("https://svc.com")
    with builder.route("forum"):
        builder.endpoint("{thread_id}", "view_thread")

    with HttpxDispatcher() as dispatcher:
        client = compile_schema(builder.build()).client(dispatcher)
        print(client.view_thread({"thread_id": 7}).unwrap().json())

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: Settings precedence resolution and deferred-source reading.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes.
    output: stdout/stderr formatting with Rich support.
    result: ``Ok`` / ``Err`` result values.
"""

from restez.generator import Client, Dispatcher, generate_client
from restez.result import Err, Ok
from restez.schema import CompiledSchema, SchemaBuilder, compile_schema, load_schema

__version__ = "0.1.0"

__all__ = [
    "Client",
    "CompiledSchema",
    "Dispatcher",
    "Err",
    "Ok",
    "SchemaBuilder",
    "compile_schema",
    "generate_client",
    "load_schema",
    "__version__",
]
