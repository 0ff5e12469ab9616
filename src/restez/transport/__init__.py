"""Dispatch capabilities that actually perform generated client calls.

The restez core never talks to the network; it hands every validated call to
a :class:`~restez.generator.client.Dispatcher` supplied by the application.
This sub-package ships one ready-made dispatcher for applications that want
plain HTTP:

* :class:`~restez.transport.http.HttpxDispatcher` -- :mod:`httpx` backed,
  with retry, dry-run mode and ``Ok`` / ``Err`` results.

Example::

    from restez.transport import HttpxDispatcher

    with HttpxDispatcher() as dispatcher:
        client = schema.client(dispatcher)
"""

from restez.transport.http import HttpxDispatcher

__all__ = ["HttpxDispatcher"]
