"""Proxy that puts the enforcement gate in front of a client's sensitive calls."""
from __future__ import annotations

import functools
from typing import Any, Generic, Iterable, TypeVar

from guardrails.client.guard import assert_guardrails, preflight_guardrails
from guardrails.client.options import GuardrailsOptions
from guardrails.client.sources import PreflightSource
from guardrails.domain.entities.outcome import EnforcementOutcome
from guardrails.domain.value_objects.mode import EnforcementMode

C = TypeVar("C")

DEFAULT_GUARDED_METHODS: frozenset[str] = frozenset({"autofill", "submit", "submit_and_wait"})


class GuardedClient(Generic[C]):
    """Wrap *client* so its sensitive async methods consult the gate first.

    Methods named in ``guarded_methods`` run :func:`assert_guardrails` on
    every call before delegating.  Every other attribute (connection
    management, read-only requests) is forwarded unchanged.

    Usage::

        guarded = GuardedClient(ledger_client, GuardrailsOptions(mode="enforced"))
        await guarded.connect()                      # not guarded
        await guarded.submit(blob)                   # gate runs first
        await guarded.with_options(mode="bypass").submit(blob)
    """

    def __init__(
        self,
        client: C,
        options: GuardrailsOptions | None = None,
        *,
        guarded_methods: Iterable[str] = DEFAULT_GUARDED_METHODS,
        source: PreflightSource | None = None,
    ) -> None:
        self._client = client
        self._options = options or GuardrailsOptions()
        self._guarded_methods = frozenset(guarded_methods)
        self._source = source

    @property
    def client(self) -> C:
        return self._client

    @property
    def mode(self) -> EnforcementMode:
        return self._options.mode

    @property
    def options(self) -> GuardrailsOptions:
        return self._options

    def with_options(self, **overrides: Any) -> GuardedClient[C]:
        """Return a proxy over the same client with overridden options."""
        return GuardedClient(
            self._client,
            self._options.merged(**overrides),
            guarded_methods=self._guarded_methods,
            source=self._source,
        )

    async def preflight(self, **overrides: Any) -> EnforcementOutcome:
        return await preflight_guardrails(self._options, source=self._source, **overrides)

    async def ensure_guardrails(self, **overrides: Any) -> EnforcementOutcome:
        return await assert_guardrails(self._options, source=self._source, **overrides)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        attr = getattr(self._client, name)
        if name not in self._guarded_methods or not callable(attr):
            return attr

        @functools.wraps(attr)
        async def _guarded(*args: Any, **kwargs: Any) -> Any:
            await self.ensure_guardrails()
            return await attr(*args, **kwargs)

        return _guarded
