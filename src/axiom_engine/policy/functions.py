"""Closed allow-list of functions callable from check expressions.

Adding a function means adding an entry to ``FUNCTIONS``; names outside the
table fail with :class:`UnknownFunction`.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from types import MappingProxyType
from typing import Final

import httpx

from axiom_engine.constants import HTTP_PROBE_TIMEOUT_SECONDS
from axiom_engine.domain.ir import CapabilityKind
from axiom_engine.policy.context import PolicyContext
from axiom_engine.policy.errors import MissingCapability, PolicyTypeError, UnknownFunction
from axiom_engine.policy.pii import contains_personal_data

Argument = str | int | float
FunctionHandler = Callable[[Sequence[Argument], PolicyContext], bool]


def request_timeout(total: float = HTTP_PROBE_TIMEOUT_SECONDS) -> httpx.Timeout:
    """Split one wall-clock budget over the pool, connect, write and read phases.

    httpx applies each limit to its phase separately, so the shares sum to
    ``total`` and a single HEAD cannot outlive it.
    """

    return httpx.Timeout(
        connect=total * 0.5,
        read=total * 0.3,
        write=total * 0.1,
        pool=total * 0.1,
    )


def http_probe(url: str, *, timeout: float = HTTP_PROBE_TIMEOUT_SECONDS) -> bool:
    """HEAD ``url`` once within ``timeout`` seconds overall (1 s by default).

    ``True`` for a 2xx/3xx status; ``False`` on any failure, timeouts included.
    Redirects are not followed.
    """

    try:
        response = httpx.head(url, timeout=request_timeout(timeout), follow_redirects=False)
    except (httpx.HTTPError, httpx.InvalidURL, ValueError):
        return False
    return 200 <= response.status_code < 400


def http_healthy(arguments: Sequence[Argument], ctx: PolicyContext) -> bool:
    if not ctx.allows(CapabilityKind.NETWORK, "http"):
        raise MissingCapability("http.healthy requires capability network('http')")
    if len(arguments) != 1 or not isinstance(arguments[0], str):
        raise PolicyTypeError("http.healthy expects one string argument (URL)")
    probe = ctx.probe if ctx.probe is not None else http_probe
    return bool(probe(arguments[0]))


def no_personal_data(arguments: Sequence[Argument], ctx: PolicyContext) -> bool:
    if arguments:
        raise PolicyTypeError("scan.artifacts.no_personal_data expects no arguments")
    for artifact in ctx.artifacts:
        if artifact.content is not None and contains_personal_data(artifact.content):
            return False
    return True


FUNCTIONS: Final[Mapping[str, FunctionHandler]] = MappingProxyType(
    {
        "http.healthy": http_healthy,
        "scan.artifacts.no_personal_data": no_personal_data,
    }
)


def call_function(name: str, arguments: Sequence[Argument], ctx: PolicyContext) -> bool:
    handler = FUNCTIONS.get(name)
    if handler is None:
        raise UnknownFunction(f"Unknown function: {name}")
    return handler(arguments, ctx)


__all__ = [
    "FUNCTIONS",
    "Argument",
    "FunctionHandler",
    "call_function",
    "http_healthy",
    "http_probe",
    "request_timeout",
    "no_personal_data",
]
