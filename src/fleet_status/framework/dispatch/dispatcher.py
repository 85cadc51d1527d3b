"""
Concurrent Dispatcher

Fans a read-only operation out to every endpoint resolved from a target.
Each endpoint runs in its own worker thread under its own deadline, so one
endpoint's failure or slowness never affects another. The dispatcher waits
for every worker to report or time out, then returns one frozen result.
"""

import asyncio
import inspect
import logging
import threading
from collections.abc import Callable
from typing import Any

from opentelemetry import trace

from fleet_status.core.registry import EndpointHandle, EndpointNotFoundError, EndpointRegistry
from fleet_status.framework.targeting import Target, TargetingError, resolve_endpoint_names

from .context import DispatchContext, DispatchTimeoutError
from .results import AggregatedResult, Outcome, ResultAggregator, serialize_payload

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# operation(context, handle) -> payload; failures are raised
Operation = Callable[[DispatchContext, EndpointHandle], Any]


def _error_message(error: BaseException) -> str:
    return str(error) or type(error).__name__


class EndpointTask:
    """
    One unit of concurrent work: a single operation on a single endpoint.

    The first outcome to settle the task wins. A worker that finishes after
    its timeout has been recorded is discarded, so the frozen result never
    changes underneath the caller.
    """

    def __init__(
        self,
        handle: EndpointHandle,
        context: DispatchContext,
        operation: Operation,
        aggregator: ResultAggregator,
    ):
        self.handle = handle
        self.context = context
        self.operation = operation
        self.aggregator = aggregator
        self.completed = threading.Event()
        self._settled = False
        self._settle_lock = threading.Lock()
        self._thread = threading.Thread(
            target=self._run, name=f"dispatch-{handle.name}", daemon=True
        )

    @property
    def name(self) -> str:
        return self.handle.name

    def start(self) -> None:
        self._thread.start()

    def settle(self, outcome: Outcome) -> bool:
        """Record the outcome unless the task already has one."""
        with self._settle_lock:
            if self._settled:
                return False
            self._settled = True
            self.aggregator.record(outcome)
            return True

    def _invoke(self) -> Any:
        if inspect.iscoroutinefunction(self.operation):
            return asyncio.run(self.operation(self.context, self.handle))
        return self.operation(self.context, self.handle)

    def _run(self) -> None:
        try:
            try:
                payload = self._invoke()
            except DispatchTimeoutError as e:
                outcome = Outcome.failed(self.name, _error_message(e))
            except Exception as e:
                logger.debug("Operation failed on endpoint %s: %s", self.name, e)
                outcome = Outcome.failed(self.name, _error_message(e))
            else:
                if self.context.done():
                    timeout = DispatchTimeoutError(self.name, self.context.timeout_seconds)
                    outcome = Outcome.failed(self.name, str(timeout))
                else:
                    outcome = self._serialize(payload)
            self.settle(outcome)
        finally:
            self.completed.set()

    def _serialize(self, payload: Any) -> Outcome:
        try:
            return Outcome.ok(self.name, serialize_payload(payload))
        except Exception as e:
            return Outcome.failed(self.name, f"failed to serialize payload: {_error_message(e)}")

    def join(self) -> bool:
        """
        Wait for the worker until the context deadline.

        Returns False if the task timed out. The worker thread is then
        cancelled and detached rather than waited for.
        """
        if self.completed.wait(self.context.remaining_time):
            # BaseExceptions such as SystemExit end the worker before it settles
            if self.settle(Outcome.failed(self.name, "worker exited without a result")):
                logger.warning("Worker for endpoint %s exited without a result", self.name)
            return True
        self.context.cancel()
        timeout = DispatchTimeoutError(self.name, self.context.timeout_seconds)
        if self.settle(Outcome.failed(self.name, str(timeout))):
            logger.warning("%s", timeout)
            return False
        return True


class Dispatcher:
    """Executes operations across the endpoints of an EndpointRegistry."""

    def __init__(self, registry: EndpointRegistry):
        self.registry = registry

    def dispatch(self, target: Target, operation: Operation) -> AggregatedResult:
        """
        Run ``operation`` on every endpoint resolved from ``target``.

        Args:
            target: Target declaration (re-validated before resolution)
            operation: Callable of (context, handle) returning a serializable payload

        Returns:
            Frozen result with one outcome per resolved name, or a result carrying
            ``resolution_error`` and no outcomes if the target could not be resolved
        """
        with tracer.start_as_current_span("fleet_status.dispatch") as span:
            span.set_attribute("target.type", target.kind.value)

            try:
                names = resolve_endpoint_names(target, self.registry.names())
            except TargetingError as e:
                logger.warning("Target resolution failed: %s", e)
                span.set_attribute("resolution.error", str(e))
                return ResultAggregator.unresolved(target, str(e))

            timeout = target.effective_timeout(self.registry.default_timeout)
            aggregator = ResultAggregator(target)
            tasks = []

            for name in names:
                handle = self.registry.get(name)
                if handle is None:
                    aggregator.record(Outcome.failed(name, str(EndpointNotFoundError(name))))
                    continue
                task = EndpointTask(handle, DispatchContext(name, timeout), operation, aggregator)
                task.start()
                tasks.append(task)

            for task in tasks:
                task.join()

            result = aggregator.freeze()
            span.set_attribute("endpoints.total", result.total_count)
            span.set_attribute("endpoints.ok", result.success_count)
            span.set_attribute("endpoints.failed", result.failure_count)

        logger.info(
            "Dispatched %s target to %d endpoints: %d ok, %d failed",
            target.kind.value,
            result.total_count,
            result.success_count,
            result.failure_count,
        )
        return result


def execute_on_endpoints(
    registry: EndpointRegistry, target: Target, operation: Operation
) -> AggregatedResult:
    """Dispatch ``operation`` to the endpoints resolved from ``target``."""
    return Dispatcher(registry).dispatch(target, operation)
