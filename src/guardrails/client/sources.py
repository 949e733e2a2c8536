"""Posture sources consulted by the guarded action wrapper.

* :class:`HttpPreflightSource` -- POSTs to a remote enforcement endpoint.
  The response body is authoritative; the status code is only a coarse,
  redundant signal and disagreements are logged, not trusted.
* :class:`ScriptPreflightSource` -- runs the preflight command locally and
  reads the snapshot artifact back.  Once the command has exited, the
  artifact is authoritative even when the exit code disagrees with it; a
  command that timed out or never started yields no snapshot.
* :class:`LocalPreflightSource` -- runs a :class:`PreflightEngine` in-process.

Sources raise :class:`PreflightUnavailableError` subclasses when no snapshot
can be obtained; they never invent a posture.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import httpx
import structlog
from pydantic import ValidationError

from guardrails.client.options import GuardrailsOptions
from guardrails.domain.entities.posture import PostureSnapshot
from guardrails.domain.value_objects.mode import EnforcementMode, Scenario
from guardrails.engine.audit.process import run_command
from guardrails.engine.preflight import PreflightEngine, read_snapshot
from guardrails.shared.exceptions import PreflightTransportError, SnapshotReadError

logger = structlog.get_logger(__name__)

# Exit codes the preflight command uses for green/yellow and for red
_EXPECTED_SCRIPT_EXIT_CODES: frozenset[int] = frozenset({0, 1})


@dataclass(frozen=True, slots=True)
class SourceResult:
    """Snapshot plus a description to use if it is red without a failing check."""

    snapshot: PostureSnapshot
    fallback_reason: str | None = None


class PreflightSource(Protocol):
    """Anything that can produce a posture snapshot for a mode."""

    name: str

    async def fetch(self, mode: EnforcementMode, scenario: Scenario | None = None) -> SourceResult:
        ...


class HttpPreflightSource:
    """Remote enforcement endpoint over HTTP."""

    name = "http"

    def __init__(
        self,
        endpoint: str,
        *,
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._timeout = timeout
        self._headers = dict(headers or {})
        self._transport = transport

    async def fetch(self, mode: EnforcementMode, scenario: Scenario | None = None) -> SourceResult:
        params = {"mode": mode.value}
        if scenario is not None:
            params["simulate"] = scenario.value

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(self._endpoint, params=params, headers=self._headers)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("preflight_transport_failed", endpoint=self._endpoint, error=str(exc))
            raise PreflightTransportError(
                f"Preflight endpoint unreachable ({type(exc).__name__}: {exc})",
                context={"endpoint": self._endpoint},
            ) from exc

        try:
            snapshot = PostureSnapshot.from_payload(resp.json())
        except (ValueError, ValidationError, RecursionError) as exc:
            logger.warning(
                "preflight_payload_invalid",
                endpoint=self._endpoint,
                status_code=resp.status_code,
            )
            raise PreflightTransportError(
                f"Preflight endpoint returned invalid payload ({resp.status_code})",
                context={"endpoint": self._endpoint, "status_code": resp.status_code},
            ) from exc

        signalled_block = not resp.is_success
        if signalled_block != (mode == EnforcementMode.ENFORCED and snapshot.is_red):
            logger.warning(
                "preflight_status_code_disagrees",
                status_code=resp.status_code,
                overall=snapshot.overall.value,
                mode=mode.value,
            )
        return SourceResult(snapshot=snapshot, fallback_reason=f"preflight returned {resp.status_code}")


class ScriptPreflightSource:
    """Local preflight command plus snapshot artifact."""

    name = "script"

    def __init__(self, options: GuardrailsOptions) -> None:
        self._options = options

    async def fetch(self, mode: EnforcementMode, scenario: Scenario | None = None) -> SourceResult:
        opts = self._options
        argv = list(opts.script_command)
        if scenario is not None:
            argv += ["--simulate", scenario.value]

        result = await run_command(argv, cwd=opts.working_dir, timeout=opts.script_timeout_seconds)
        if result.spawn_error is not None:
            # A script that never finished says nothing about the artifact on disk
            logger.warning("preflight_script_incomplete", error=result.spawn_error, timed_out=result.timed_out)
            raise SnapshotReadError(
                f"Preflight script did not complete ({result.spawn_error})",
                context={"path": str(opts.status_file), "timed_out": result.timed_out},
            )

        execution_error: str | None = None
        if result.exit_code not in _EXPECTED_SCRIPT_EXIT_CODES:
            execution_error = f"preflight command exited with code {result.exit_code}"

        try:
            snapshot = await read_snapshot(opts.status_file)
        except SnapshotReadError as exc:
            if execution_error:
                raise SnapshotReadError(
                    f"Preflight script failed ({execution_error}) and status file "
                    f"could not be read ({exc.message})",
                    context={"path": str(opts.status_file)},
                ) from exc
            raise

        if result.exit_code is not None and (result.exit_code != 0) != snapshot.is_red:
            logger.info(
                "preflight_exit_code_disagrees",
                exit_code=result.exit_code,
                overall=snapshot.overall.value,
            )
        return SourceResult(snapshot=snapshot, fallback_reason=execution_error)


class LocalPreflightSource:
    """In-process :class:`PreflightEngine`."""

    name = "local"

    def __init__(self, engine: PreflightEngine) -> None:
        self._engine = engine

    async def fetch(self, mode: EnforcementMode, scenario: Scenario | None = None) -> SourceResult:
        snapshot = await self._engine.run(scenario=scenario)
        return SourceResult(
            snapshot=snapshot.annotate(
                bypass_enabled=mode == EnforcementMode.BYPASS,
                simulated_scenario=scenario,
            )
        )


def select_source(options: GuardrailsOptions) -> PreflightSource:
    """Pick the remote endpoint when configured, else the local script."""
    if options.preflight_endpoint:
        return HttpPreflightSource(
            options.preflight_endpoint,
            timeout=options.timeout_seconds,
            headers=options.headers,
        )
    return ScriptPreflightSource(options)
