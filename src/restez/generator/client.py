"""Generate callable clients from resolved endpoint tables.

For every :class:`~restez.models.ResolvedEndpoint`, :func:`generate_client`
builds one :class:`EndpointFunction`.  Calling it:

1. Computes the parameters required by the endpoint's path template.
2. Rejects the call if any required parameter is absent (or ``None``).
3. Runs the validator over every supplied parameter, stopping at the first
   one it rejects.
4. Returns an :class:`~restez.result.Err` wrapping a
   :class:`~restez.exceptions.ValidationError` on either failure, without
   dispatching.
5. Interpolates the URL, returning ``Err(InterpolationError)`` if that
   fails, again without dispatching.
6. Otherwise calls the dispatch capability with
   ``(id, attributes, url, params, options)`` and returns its result
   unchanged.

The dispatch capability and the validator come from the application: either
a :class:`Dispatcher` subclass, or plain callables passed as the ``dispatch``
and ``validator`` options.
"""

from __future__ import annotations

import keyword
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional

from restez.exceptions import AuthoringError, ConfigError, ValidationError
from restez.generator.template import (
    PatternLike,
    compile_pattern,
    interpolate,
    placeholder_names,
)
from restez.models import ResolvedEndpoint
from restez.result import Err

logger = logging.getLogger(__name__)

DispatchFn = Callable[[str, dict[str, Any], str, dict[str, Any], dict[str, Any]], Any]
ValidatorFn = Callable[[str, Any], bool]


class Dispatcher(ABC):
    """Interface a consuming application implements to perform calls.

    Subclasses must implement :meth:`endpoint`.  :meth:`validate_param` is
    optional; the default accepts every parameter.

    Example::

        class PrintDispatcher(Dispatcher):
            def endpoint(self, id, attributes, url, params, options):
                print(attributes["method"], url)
                return Ok(url)
    """

    @abstractmethod
    def endpoint(
        self,
        id: str,
        attributes: dict[str, Any],
        url: str,
        params: dict[str, Any],
        options: dict[str, Any],
    ) -> Any:
        """Perform the call for endpoint *id*.

        Args:
            id: The endpoint id.
            attributes: The endpoint's resolved attributes plus the reserved
                ``method`` and ``path_template`` keys.
            url: The fully interpolated URL.
            params: Every parameter the caller supplied, including the ones
                consumed by the path.
            options: Per-call options, passed through untouched.

        Returns:
            Anything; the generated callable returns it unchanged.
        """
        ...

    def validate_param(self, key: str, value: Any) -> bool:
        """Return ``False`` to reject a supplied parameter before dispatch."""
        return True


def _accept_all(key: str, value: Any) -> bool:
    return True


class EndpointFunction:
    """The generated callable for one endpoint.

    Invoke as ``fn(params, options)``; both arguments are optional mappings.
    """

    def __init__(
        self,
        endpoint: ResolvedEndpoint,
        dispatch: DispatchFn,
        validator: ValidatorFn,
        pattern: PatternLike = None,
    ) -> None:
        self._endpoint = endpoint
        self._dispatch = dispatch
        self._validator = validator
        self._pattern = compile_pattern(pattern)
        self.__name__ = endpoint.id
        self.__doc__ = f"{endpoint.method.value} {endpoint.path_template}"

    @property
    def endpoint(self) -> ResolvedEndpoint:
        return self._endpoint

    @property
    def required_params(self) -> list[str]:
        """Names of the path parameters, in template order."""
        return placeholder_names(self._endpoint.path_template, self._pattern)

    def __call__(
        self,
        params: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        params = dict(params or {})
        options = dict(options or {})
        endpoint_id = self._endpoint.id

        error = self._validate(params)
        if error is not None:
            logger.debug("Rejected call to %s: %s", endpoint_id, error)
            return Err(error)

        result = interpolate(self._endpoint.path_template, params, self._pattern)
        if not result.is_ok:
            logger.debug("Interpolation failed for %s: %s", endpoint_id, result.error)
            return result

        url = result.value
        logger.debug("Dispatching %s %s", endpoint_id, url)
        return self._dispatch(
            endpoint_id, self._endpoint.dispatch_attributes(), url, params, options
        )

    def _validate(self, params: dict[str, Any]) -> Optional[ValidationError]:
        for name in self.required_params:
            if params.get(name) is None:
                return ValidationError(self._endpoint.id, name, "is required")
        for key, value in params.items():
            if not self._validator(key, value):
                return ValidationError(self._endpoint.id, key, "was rejected by the validator")
        return None

    def __repr__(self) -> str:
        return f"<EndpointFunction {self._endpoint.id}: {self.__doc__}>"


def check_endpoint_id(endpoint_id: Optional[str], where: str) -> str:
    """Return *endpoint_id* if a :class:`Client` can expose it as an attribute.

    Ids must be non-empty identifiers that are not keywords and do not start
    with an underscore; the underscore namespace belongs to :class:`Client`.

    Raises:
        AuthoringError: Naming the id and *where* it was declared.
    """
    if not endpoint_id:
        raise AuthoringError(f"Endpoint at {where} has an empty id")
    if not endpoint_id.isidentifier() or keyword.iskeyword(endpoint_id):
        raise AuthoringError(
            f"Endpoint id '{endpoint_id}' at {where} is not a valid identifier"
        )
    if endpoint_id.startswith("_"):
        raise AuthoringError(
            f"Endpoint id '{endpoint_id}' at {where} must not start with an underscore"
        )
    return endpoint_id


class Client:
    """The generated client surface: one :class:`EndpointFunction` per id.

    Functions are reachable as attributes (``client.view_thread``) or items
    (``client["view_thread"]``).  Like :func:`collections.namedtuple`, the
    client's own helpers (:attr:`_ids`, :attr:`_endpoints`) live under a
    leading underscore so that every endpoint id stays free.
    """

    def __init__(self, functions: Mapping[str, EndpointFunction]) -> None:
        self._functions = dict(functions)

    @property
    def _ids(self) -> list[str]:
        return list(self._functions)

    @property
    def _endpoints(self) -> list[ResolvedEndpoint]:
        """The resolved table this client was generated from."""
        return [fn.endpoint for fn in self._functions.values()]

    def __getattr__(self, name: str) -> EndpointFunction:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._functions[name]
        except KeyError:
            raise AttributeError(f"Client has no endpoint '{name}'") from None

    def __getitem__(self, endpoint_id: str) -> EndpointFunction:
        return self._functions[endpoint_id]

    def __contains__(self, endpoint_id: object) -> bool:
        return endpoint_id in self._functions

    def __iter__(self) -> Iterator[str]:
        return iter(self._functions)

    def __len__(self) -> int:
        return len(self._functions)

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self._functions))

    def __repr__(self) -> str:
        return f"Client({', '.join(self._functions)})"


def generate_client(
    endpoints: Iterable[ResolvedEndpoint],
    dispatcher: Optional[Dispatcher] = None,
    *,
    dispatch: Optional[DispatchFn] = None,
    validator: Optional[ValidatorFn] = None,
    parameter_pattern: PatternLike = None,
) -> Client:
    """Build a :class:`Client` for a resolved endpoint table.

    Args:
        endpoints: Resolved endpoints, e.g. from
            :meth:`~restez.schema.compiled.CompiledSchema.materialize`.
        dispatcher: Supplies ``endpoint`` and ``validate_param``.
        dispatch: Overrides ``dispatcher.endpoint``.
        validator: Overrides ``dispatcher.validate_param``.
        parameter_pattern: Overrides the ``{name}`` placeholder syntax.

    Returns:
        The generated client.

    Raises:
        ConfigError: If no dispatch capability is supplied, or the pattern
            is invalid.
        AuthoringError: If two endpoints share an id, or an id cannot be
            exposed as a client attribute.
    """
    dispatch_fn = dispatch or (dispatcher.endpoint if dispatcher is not None else None)
    if dispatch_fn is None:
        raise ConfigError("A dispatcher or a dispatch function is required")

    validator_fn = validator or (
        dispatcher.validate_param if dispatcher is not None else _accept_all
    )
    pattern = compile_pattern(parameter_pattern)

    functions: dict[str, EndpointFunction] = {}
    for endpoint in endpoints:
        check_endpoint_id(endpoint.id, endpoint.path_template)
        if endpoint.id in functions:
            raise AuthoringError(f"Duplicate endpoint id '{endpoint.id}'")
        functions[endpoint.id] = EndpointFunction(endpoint, dispatch_fn, validator_fn, pattern)

    logger.debug("Generated client with %d endpoint function(s)", len(functions))
    return Client(functions)
