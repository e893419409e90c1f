"""Base sensor classes for operator monitoring.

This module defines the OperatorSensor class that provides lifecycle hooks
for the workload controller. All hooks are no-ops by default, allowing
subclasses to override only the events they care about.

Hooks come in pairs where an operation has a duration: ``on_X_start()``
returns an optional state dict that is handed back to ``on_X_complete()``.
"""

from typing import Any, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


class OperatorSensor:
    """Base sensor class for workload controller monitoring.

    Example:
        class LoggingSensor(OperatorSensor):
            def on_reconcile_start(self, controller_name, namespace, trigger_source):
                return {'start_time': time.time()}

            def on_reconcile_complete(self, controller_name, namespace, state, success, error=None):
                duration = time.time() - state['start_time']
                logger.info(f"Reconciled {controller_name} in {duration}s")
    """

    # =============================================================================
    # Reconciliation Lifecycle Hooks
    # =============================================================================

    def on_reconcile_start(
        self,
        controller_name: str,
        namespace: str,
        trigger_source: str,
    ) -> Optional[Dict[str, Any]]:
        """Called when a reconciliation pass begins.

        Args:
            controller_name: Name of the workload controller
            namespace: Target namespace of the workload
            trigger_source: What requested the pass (create, update, timer, deployment, retry)

        Returns:
            Optional state dict passed to on_reconcile_complete
        """
        pass

    def on_reconcile_complete(
        self,
        controller_name: str,
        namespace: str,
        state: Optional[Dict[str, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Called when a reconciliation pass completes.

        Args:
            controller_name: Name of the workload controller
            namespace: Target namespace of the workload
            state: State dict returned from on_reconcile_start
            success: Whether the pass succeeded
            error: Exception if the pass failed
        """
        pass

    def on_reconcile_queued(
        self,
        controller_name: str,
        namespace: str,
        queue_depth: int,
    ) -> None:
        """Called when a reconciliation request is queued.

        Args:
            controller_name: Name of the workload controller
            namespace: Target namespace of the workload
            queue_depth: Number of keys waiting in the work queue
        """
        pass

    def on_reconcile_dequeued(
        self,
        controller_name: str,
        namespace: str,
        wait_time: float,
    ) -> None:
        """Called when a reconciliation request is picked up by a worker.

        Args:
            controller_name: Name of the workload controller
            namespace: Target namespace of the workload
            wait_time: Time spent in queue (seconds)
        """
        pass

    def on_reconcile_skipped(
        self,
        controller_name: str,
        namespace: str,
        management_state: str,
    ) -> None:
        """Called when a pass stops early because the operator is not managed.

        Args:
            controller_name: Name of the workload controller
            namespace: Target namespace of the workload
            management_state: Unmanaged, Removed or Unknown
        """
        pass

    def on_reconcile_retry(
        self,
        controller_name: str,
        namespace: str,
        retries: int,
        delay: float,
    ) -> None:
        """Called when a failed pass is scheduled again.

        Args:
            controller_name: Name of the workload controller
            namespace: Target namespace of the workload
            retries: Consecutive failures for the key so far
            delay: Seconds until the key is added back to the queue
        """
        pass

    # =============================================================================
    # Status Hooks
    # =============================================================================

    def on_conditions_evaluated(
        self,
        controller_name: str,
        namespace: str,
        conditions: List[Any],
    ) -> None:
        """Called after a condition set has been written to the operator status.

        Args:
            controller_name: Name of the workload controller
            namespace: Target namespace of the workload
            conditions: The conditions that were written
        """
        pass

    def on_status_update_failed(
        self,
        name: str,
        namespace: str,
        error: Exception,
    ) -> None:
        """Called when writing the operator status fails.

        Args:
            name: Name of the operator resource
            namespace: Namespace of the operator resource
            error: The API error
        """
        pass

    def on_version_changed(
        self,
        operand: str,
        previous: Optional[str],
        version: str,
    ) -> None:
        """Called when the recorded version of an operand changes.

        Args:
            operand: Operand name, ``<operand prefix>-<workload name>``
            previous: Version recorded before, None on first record
            version: Newly recorded version
        """
        pass

    def on_namespace_deleted(
        self,
        controller_name: str,
        namespace: str,
    ) -> None:
        """Called after the target namespace was deleted for a Removed operator.

        Args:
            controller_name: Name of the workload controller
            namespace: The deleted namespace
        """
        pass
