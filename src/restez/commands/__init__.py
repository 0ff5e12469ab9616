"""Built-in CLI commands for restez.

* :mod:`~restez.commands.inspect` -- ``endpoints`` and ``show``: examine the
  endpoint table of a schema.
* :mod:`~restez.commands.call` -- ``call``: invoke an endpoint over HTTP.

Each module exports plain callback functions that :mod:`restez.app`
registers directly on the root Typer app.
"""
