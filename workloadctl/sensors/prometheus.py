"""Prometheus monitoring backend for the workload controller.

PrometheusMonitor turns controller lifecycle events into Prometheus metrics:

1. Reconciliation loop health: duration, throughput, queue depth, retries
2. Workload health: current value of every published condition
3. Status and version bookkeeping: status write failures, recorded versions

All metrics carry the controller name and target namespace as labels.
"""

from typing import Any, Dict, List, Optional
import time
import logging

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram

from workloadctl.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class PrometheusMonitor(OperatorSensor):
    """Prometheus metrics monitor for the workload controller.

    Metrics are organized into three groups:
    - workloadctl_reconcile_* - Reconciliation loop metrics
    - workloadctl_condition_* - Published workload conditions
    - workloadctl_status_* / workloadctl_operand_* - Status and version bookkeeping
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        super().__init__()

        # =============================================================================
        # Reconciliation Loop Metrics
        # =============================================================================

        self.reconcile_duration = Histogram(
            'workloadctl_reconcile_duration_seconds',
            'Time spent in a reconciliation pass',
            labelnames=['controller', 'namespace', 'trigger_source', 'result'],
            buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
            registry=registry,
        )

        self.reconcile_total = Counter(
            'workloadctl_reconcile_total',
            'Total number of reconciliation passes',
            labelnames=['controller', 'namespace', 'trigger_source', 'result'],
            registry=registry,
        )

        self.reconcile_errors = Counter(
            'workloadctl_reconcile_errors_total',
            'Total number of failed reconciliation passes',
            labelnames=['controller', 'namespace', 'error_type'],
            registry=registry,
        )

        self.reconcile_skipped = Counter(
            'workloadctl_reconcile_skipped_total',
            'Passes stopped early because the operator is not managed',
            labelnames=['controller', 'namespace', 'management_state'],
            registry=registry,
        )

        self.reconcile_retries = Counter(
            'workloadctl_reconcile_retries_total',
            'Failed passes scheduled again with backoff',
            labelnames=['controller', 'namespace'],
            registry=registry,
        )

        self.reconcile_retry_delay_seconds = Gauge(
            'workloadctl_reconcile_retry_delay_seconds',
            'Backoff of the most recent retry',
            labelnames=['controller', 'namespace'],
            registry=registry,
        )

        self.reconcile_queue_depth = Gauge(
            'workloadctl_reconcile_queue_depth',
            'Current reconciliation queue depth per controller',
            labelnames=['controller', 'namespace'],
            registry=registry,
        )

        self.reconcile_queue_wait_seconds = Histogram(
            'workloadctl_reconcile_queue_wait_seconds',
            'Time spent waiting in the reconciliation queue',
            labelnames=['controller', 'namespace'],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0],
            registry=registry,
        )

        # =============================================================================
        # Condition Metrics
        # =============================================================================

        self.condition_status = Gauge(
            'workloadctl_condition_status',
            'Published condition value (1 for True, 0 for False, -1 for Unknown)',
            labelnames=['controller', 'namespace', 'type', 'reason'],
            registry=registry,
        )

        # =============================================================================
        # Status and Version Metrics
        # =============================================================================

        self.status_update_failures = Counter(
            'workloadctl_status_update_failures_total',
            'Failed writes of the operator status',
            labelnames=['name', 'namespace', 'status_code'],
            registry=registry,
        )

        self.operand_version_changes = Counter(
            'workloadctl_operand_version_changes_total',
            'Number of times a new operand version was recorded',
            labelnames=['operand', 'version'],
            registry=registry,
        )

        self.namespace_deletions = Counter(
            'workloadctl_namespace_deletions_total',
            'Target namespaces deleted for Removed operators',
            labelnames=['controller', 'namespace'],
            registry=registry,
        )

    # =============================================================================
    # Reconciliation Lifecycle Hooks
    # =============================================================================

    def on_reconcile_start(
        self,
        controller_name: str,
        namespace: str,
        trigger_source: str,
    ) -> Optional[Dict[str, Any]]:
        """Record reconciliation start time."""
        return {
            'start_time': time.time(),
            'trigger_source': trigger_source,
        }

    def on_reconcile_complete(
        self,
        controller_name: str,
        namespace: str,
        state: Optional[Dict[str, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Record reconciliation duration and result."""
        if state:
            duration = time.time() - state['start_time']
            trigger_source = state['trigger_source']
            result = 'success' if success else 'failure'

            self.reconcile_duration.labels(
                controller=controller_name,
                namespace=namespace,
                trigger_source=trigger_source,
                result=result,
            ).observe(duration)

            self.reconcile_total.labels(
                controller=controller_name,
                namespace=namespace,
                trigger_source=trigger_source,
                result=result,
            ).inc()

        if error:
            self.reconcile_errors.labels(
                controller=controller_name,
                namespace=namespace,
                error_type=error.__class__.__name__,
            ).inc()

    def on_reconcile_queued(self, controller_name: str, namespace: str, queue_depth: int) -> None:
        """Record reconciliation queue depth."""
        self.reconcile_queue_depth.labels(
            controller=controller_name,
            namespace=namespace,
        ).set(queue_depth)

    def on_reconcile_dequeued(self, controller_name: str, namespace: str, wait_time: float) -> None:
        """Record time spent waiting in queue."""
        self.reconcile_queue_wait_seconds.labels(
            controller=controller_name,
            namespace=namespace,
        ).observe(wait_time)

    def on_reconcile_skipped(
        self, controller_name: str, namespace: str, management_state: str
    ) -> None:
        self.reconcile_skipped.labels(
            controller=controller_name,
            namespace=namespace,
            management_state=management_state,
        ).inc()

    def on_reconcile_retry(
        self, controller_name: str, namespace: str, retries: int, delay: float
    ) -> None:
        self.reconcile_retries.labels(controller=controller_name, namespace=namespace).inc()
        self.reconcile_retry_delay_seconds.labels(
            controller=controller_name, namespace=namespace
        ).set(delay)

    # =============================================================================
    # Status Hooks
    # =============================================================================

    def on_conditions_evaluated(
        self, controller_name: str, namespace: str, conditions: List[Any]
    ) -> None:
        """Expose each condition as a gauge."""
        values = {'True': 1, 'False': 0}
        for condition in conditions:
            self.condition_status.labels(
                controller=controller_name,
                namespace=namespace,
                type=condition.type,
                reason=condition.reason or '',
            ).set(values.get(condition.status, -1))

    def on_status_update_failed(self, name: str, namespace: str, error: Exception) -> None:
        self.status_update_failures.labels(
            name=name,
            namespace=namespace,
            status_code=str(getattr(error, 'status', '') or ''),
        ).inc()

    def on_version_changed(self, operand: str, previous: Optional[str], version: str) -> None:
        self.operand_version_changes.labels(operand=operand, version=version).inc()

    def on_namespace_deleted(self, controller_name: str, namespace: str) -> None:
        self.namespace_deletions.labels(controller=controller_name, namespace=namespace).inc()
