"""Guarded action wrapper.

Runs the enforcement gate immediately before a caller-supplied async action
on *every* invocation, since posture can change between actions.  The
wrapper only adds a precondition: it never retries, caches, or suppresses
the action's own failures.

Usage::

    outcome = await assert_guardrails(GuardrailsOptions(mode="enforced"))

    receipt = await guarded_call(lambda: client.submit(blob), options)

    @guarded(GuardrailsOptions(preflight_endpoint="http://guard/api/preflight"))
    async def transfer(amount: int) -> str: ...

    await transfer(5)
    await transfer.with_options(mode="bypass")(5)
"""
from __future__ import annotations

import functools
from importlib import metadata
from typing import Any, Awaitable, Callable, Protocol, TypeVar

import structlog

from guardrails.client.options import GuardrailsOptions
from guardrails.client.sources import PreflightSource, select_source
from guardrails.domain.entities.outcome import EnforcementOutcome
from guardrails.domain.entities.posture import PostureSnapshot
from guardrails.engine.enforcer.gate import DEFAULT_FAILURE_REASON, decide
from guardrails.shared.exceptions import (
    DependencyVersionError,
    GuardrailsUnavailableError,
    GuardrailsViolationError,
    PreflightUnavailableError,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class SensitiveAction(Protocol[T_co]):
    """A zero-argument async operation the gate must approve first."""

    def __call__(self) -> Awaitable[T_co]:
        ...


def _resolve(options: GuardrailsOptions | None, overrides: dict[str, Any]) -> GuardrailsOptions:
    return (options or GuardrailsOptions()).merged(**overrides)


def assert_expected_version(options: GuardrailsOptions) -> None:
    """Verify the installed version of ``options.expected_distribution``.

    Raises:
        DependencyVersionError: when the distribution is missing or its
            version differs from ``options.expected_version``.
    """
    if options.expected_version is None or options.expected_distribution is None:
        return

    name = options.expected_distribution
    try:
        actual = metadata.version(name)
    except metadata.PackageNotFoundError as exc:
        raise DependencyVersionError(
            f"Unable to read installed {name} version",
            context={"distribution": name},
        ) from exc

    if actual != options.expected_version:
        raise DependencyVersionError(
            f"Installed {name} version ({actual}) does not match expected "
            f"version ({options.expected_version})",
            context={"distribution": name, "actual": actual, "expected": options.expected_version},
        )


async def preflight_guardrails(
    options: GuardrailsOptions | None = None,
    *,
    source: PreflightSource | None = None,
    **overrides: Any,
) -> EnforcementOutcome:
    """Consult the posture source and return the gate's decision.

    Raises:
        PreflightUnavailableError: when no snapshot could be obtained.
        DependencyVersionError: when the expected library version differs.
    """
    opts = _resolve(options, overrides)
    assert_expected_version(opts)
    src = source or select_source(opts)

    result = await src.fetch(opts.mode, opts.scenario)
    return decide(
        result.snapshot,
        opts.mode,
        fallback_reason=result.fallback_reason,
        source=src.name,
    )


async def assert_guardrails(
    options: GuardrailsOptions | None = None,
    *,
    source: PreflightSource | None = None,
    **overrides: Any,
) -> EnforcementOutcome:
    """Like :func:`preflight_guardrails` but raise when the action is blocked.

    An unavailable posture source fails closed in enforced mode by raising
    :class:`GuardrailsUnavailableError`; in bypass mode it is logged and the
    outcome is returned unblocked.

    Raises:
        GuardrailsViolationError: when the gate blocks the action.
    """
    opts = _resolve(options, overrides)
    src = source or select_source(opts)

    try:
        outcome = await preflight_guardrails(opts, source=src)
    except PreflightUnavailableError as exc:
        outcome = decide(
            PostureSnapshot.unreachable(),
            opts.mode,
            fallback_reason=exc.message,
            source=src.name,
        )
        if outcome.blocked:
            logger.warning("guardrails_fail_closed", source=src.name, error=exc.message)
            raise GuardrailsUnavailableError(outcome.reason or exc.message, outcome, exc) from exc
        logger.warning("guardrails_unavailable_bypassed", source=src.name, error=exc.message)
        return outcome

    if outcome.blocked:
        logger.warning("guardrails_blocked", source=outcome.source, reason=outcome.reason)
        raise GuardrailsViolationError(outcome.reason or DEFAULT_FAILURE_REASON, outcome)
    if outcome.would_have_blocked:
        logger.warning("guardrails_bypassed", source=outcome.source, reason=outcome.reason)
    return outcome


async def guarded_call(
    action: SensitiveAction[T],
    options: GuardrailsOptions | None = None,
    *,
    source: PreflightSource | None = None,
    **overrides: Any,
) -> T:
    """Run the gate, then await *action* and return its result unchanged."""
    await assert_guardrails(options, source=source, **overrides)
    return await action()


class GuardedFunction:
    """Async callable produced by :func:`guarded`."""

    def __init__(
        self,
        func: Callable[..., Awaitable[Any]],
        options: GuardrailsOptions | None,
        source: PreflightSource | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> None:
        functools.update_wrapper(self, func)
        self._func = func
        self._options = options
        self._source = source
        self._overrides = dict(overrides or {})

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return await guarded_call(
            lambda: self._func(*args, **kwargs),
            self._options,
            source=self._source,
            **self._overrides,
        )

    def with_options(self, **overrides: Any) -> GuardedFunction:
        """Return a callable with per-call overrides; defaults stay untouched."""
        return GuardedFunction(
            self._func,
            self._options,
            self._source,
            {**self._overrides, **overrides},
        )


def guarded(
    options: GuardrailsOptions | None = None,
    *,
    source: PreflightSource | None = None,
) -> Callable[[Callable[..., Awaitable[Any]]], GuardedFunction]:
    """Decorator form of :func:`guarded_call`."""

    def decorator(func: Callable[..., Awaitable[Any]]) -> GuardedFunction:
        return GuardedFunction(func, options, source)

    return decorator
