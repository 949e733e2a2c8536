"""In-process enforcement: guarded actions, guarded clients, posture sources."""

from guardrails.client.guard import (
    GuardedFunction,
    SensitiveAction,
    assert_expected_version,
    assert_guardrails,
    guarded,
    guarded_call,
    preflight_guardrails,
)
from guardrails.client.guarded_client import DEFAULT_GUARDED_METHODS, GuardedClient
from guardrails.client.options import GuardrailsOptions
from guardrails.client.sources import (
    HttpPreflightSource,
    LocalPreflightSource,
    PreflightSource,
    ScriptPreflightSource,
    SourceResult,
    select_source,
)

__all__ = [
    "DEFAULT_GUARDED_METHODS",
    "GuardedClient",
    "GuardedFunction",
    "GuardrailsOptions",
    "HttpPreflightSource",
    "LocalPreflightSource",
    "PreflightSource",
    "ScriptPreflightSource",
    "SensitiveAction",
    "SourceResult",
    "assert_expected_version",
    "assert_guardrails",
    "guarded",
    "guarded_call",
    "preflight_guardrails",
    "select_source",
]
