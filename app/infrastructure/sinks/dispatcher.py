"""Sink dispatcher: fans one payload out to the configured channels.

For every configured channel the dispatcher checks the exclusion list,
obtains a live sink from the factory and forwards the payload. The failure
policy is explicit: with ``fail_fast`` the first failure stops the fan-out
and the remaining channels are reported as skipped, otherwise every channel
is attempted.
"""

from typing import List, Optional, Sequence

import structlog

from infrastructure.configuration import SinkSettings
from infrastructure.sinks.errors import SinkError
from infrastructure.sinks.factory import SinkFactory
from infrastructure.sinks.models import (
    DispatchResult,
    DispatchStatus,
    NotificationPayload,
    SinkSpec,
    sink_identity,
)

logger = structlog.get_logger()


class SinkDispatcher:
    """Dispatches notifications to configured sinks.

    Args:
        factory: SinkFactory supplying live sinks
        fail_fast: Stop at the first failing channel
        requeue_after_seconds: Retry hint for failures without their own hint

    Example:
        dispatcher = SinkDispatcher(factory)
        results = dispatcher.dispatch("prod", sink_specs, payload)
        failed = [r for r in results if r.is_failure]
    """

    def __init__(
        self,
        factory: SinkFactory,
        fail_fast: bool = True,
        requeue_after_seconds: int = 5,
    ):
        self.factory = factory
        self.fail_fast = fail_fast
        self.requeue_after_seconds = requeue_after_seconds

    @classmethod
    def from_settings(cls, factory: SinkFactory, sink_settings: SinkSettings) -> "SinkDispatcher":
        return cls(
            factory,
            fail_fast=sink_settings.DISPATCH_FAIL_FAST,
            requeue_after_seconds=sink_settings.DISPATCH_REQUEUE_AFTER_SECONDS,
        )

    def dispatch(
        self,
        scope: str,
        sink_specs: Sequence[SinkSpec],
        payload: NotificationPayload,
    ) -> List[DispatchResult]:
        """Forward payload to every configured channel.

        Args:
            scope: Cluster name, first component of each sink identity
            sink_specs: Configured channels
            payload: Notification to deliver

        Returns:
            One DispatchResult per configured channel, in order
        """
        results: List[DispatchResult] = []
        stop_reason: Optional[str] = None

        for spec in sink_specs:
            identity = sink_identity(scope, spec.namespace, spec.name)
            log = logger.bind(identity=identity, sink_type=spec.sink_type.value)

            if stop_reason is not None:
                results.append(
                    DispatchResult(
                        identity=identity,
                        sink_type=spec.sink_type,
                        status=DispatchStatus.SKIPPED,
                        message=stop_reason,
                    )
                )
                continue

            if spec.excludes(payload.reason):
                log.info("sink_dispatch_excluded", reason=payload.reason)
                results.append(
                    DispatchResult(
                        identity=identity,
                        sink_type=spec.sink_type,
                        status=DispatchStatus.EXCLUDED,
                        message=f"reason {payload.reason} is excluded",
                    )
                )
                continue

            result = self._deliver(identity, spec, payload, log)
            results.append(result)

            if result.is_failure and self.fail_fast:
                stop_reason = f"dispatch stopped after {identity} failed"

        sent = sum(1 for r in results if r.is_success)
        failed = sum(1 for r in results if r.is_failure)
        logger.info(
            "dispatch_completed",
            scope=scope,
            total=len(results),
            sent=sent,
            failed=failed,
        )
        return results

    def _deliver(
        self,
        identity: str,
        spec: SinkSpec,
        payload: NotificationPayload,
        log,
    ) -> DispatchResult:
        try:
            sink = self.factory.build(identity, spec.sink_type, spec.config)
            sink.forward_event(payload)
        except SinkError as e:
            log.error(
                "sink_dispatch_failed",
                error=e.message,
                error_code=e.error_code,
            )
            return DispatchResult(
                identity=identity,
                sink_type=spec.sink_type,
                status=DispatchStatus.FAILED,
                message=e.message,
                error_code=e.error_code,
                retry_after=e.retry_after or self.requeue_after_seconds,
            )
        except Exception as e:
            log.error("sink_dispatch_exception", error=str(e), exc_info=True)
            return DispatchResult(
                identity=identity,
                sink_type=spec.sink_type,
                status=DispatchStatus.FAILED,
                message=str(e),
                error_code="CHANNEL_EXCEPTION",
                retry_after=self.requeue_after_seconds,
            )

        log.info("sink_dispatch_sent")
        return DispatchResult(
            identity=identity,
            sink_type=spec.sink_type,
            status=DispatchStatus.SENT,
            message="notification delivered",
        )
