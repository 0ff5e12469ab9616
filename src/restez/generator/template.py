"""URL template engine: find placeholders in a path template and fill them in.

Path templates carry bracket-delimited placeholders, e.g.
``https://svc.com/forum/{thread_id}/post/{post_id}``.  The placeholder
syntax is pluggable: any regular expression with exactly one capture group
(the parameter name) may replace :data:`~restez.models.DEFAULT_PARAMETER_PATTERN`.

Interpolation never leaves a placeholder unexpanded.  A missing value yields
an :class:`~restez.result.Err` wrapping an
:class:`~restez.exceptions.InterpolationError` naming the placeholder.
Values are substituted with ``str(value)`` and are **not** escaped; callers
needing percent-encoding must pre-encode them.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Any, Mapping, Optional, Union

from restez.exceptions import ConfigError, InterpolationError
from restez.models import DEFAULT_PARAMETER_PATTERN
from restez.result import Err, Ok

PatternLike = Union[str, re.Pattern, None]


@lru_cache(maxsize=32)
def _compile(pattern: str) -> re.Pattern[str]:
    try:
        compiled = re.compile(pattern)
    except re.error as exc:
        raise ConfigError(f"Invalid parameter pattern {pattern!r}: {exc}") from exc
    return _check_groups(compiled)


def _check_groups(compiled: re.Pattern[str]) -> re.Pattern[str]:
    if compiled.groups != 1:
        raise ConfigError(
            f"Parameter pattern {compiled.pattern!r} must have exactly one capture group "
            f"(found {compiled.groups})"
        )
    return compiled


def compile_pattern(pattern: PatternLike = None) -> re.Pattern[str]:
    """Compile and check a placeholder pattern.

    Args:
        pattern: A regex string, an already compiled pattern (used as
            is, flags included), or ``None`` for the default ``{name}``
            syntax.

    Returns:
        The compiled pattern.

    Raises:
        ConfigError: If the pattern does not compile or does not have
            exactly one capture group.
    """
    if pattern is None:
        return _compile(DEFAULT_PARAMETER_PATTERN)
    if isinstance(pattern, re.Pattern):
        return _check_groups(pattern)
    return _compile(pattern)


def placeholder_names(template: str, pattern: PatternLike = None) -> list[str]:
    """Return placeholder names in template order, duplicates collapsed.

    Example::

        >>> placeholder_names("/forum/{thread_id}/post/{post_id}")
        ['thread_id', 'post_id']
    """
    names: list[str] = []
    for match in compile_pattern(pattern).finditer(template):
        name = match.group(1)
        if name not in names:
            names.append(name)
    return names


def required_params(template: str, pattern: PatternLike = None) -> frozenset[str]:
    """Return the set of parameter names a template needs.

    Example::

        >>> sorted(required_params("/forum/{thread_id}/post/{post_id}"))
        ['post_id', 'thread_id']
    """
    return frozenset(placeholder_names(template, pattern))


def interpolate(
    template: str,
    params: Optional[Mapping[str, Any]],
    pattern: PatternLike = None,
) -> Union[Ok[str], Err[InterpolationError]]:
    """Replace every placeholder in *template* with its value from *params*.

    A parameter counts as missing when it is absent or ``None``.

    Returns:
        ``Ok(url)`` with every placeholder expanded, or
        ``Err(InterpolationError)`` naming the first missing placeholder
        in template order.

    Example::

        >>> interpolate("/forum/{thread_id}", {"thread_id": 42})
        Ok(value='/forum/42')
    """
    compiled = compile_pattern(pattern)
    values = params or {}

    for name in placeholder_names(template, compiled):
        if values.get(name) is None:
            return Err(InterpolationError(template, name))

    return Ok(compiled.sub(lambda m: str(values[m.group(1)]), template))
