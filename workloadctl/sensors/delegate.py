"""Sensor delegation for fan-out pattern.

SensorDelegate routes sensor events to multiple monitoring backends. Each
backend receives the same events and keeps its own start/complete state.
A failing backend is logged and never breaks the controller.
"""

from typing import Any, Dict, List, Optional, Set
import logging

from workloadctl.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class SensorDelegate(OperatorSensor):
    """Delegate sensor that fans out events to multiple backends.

    Example:
        delegate = SensorDelegate()
        delegate.add(PrometheusMonitor())

        state = delegate.on_reconcile_start("etcdWorkloadController", "openshift-etcd", "timer")
        delegate.on_reconcile_complete("etcdWorkloadController", "openshift-etcd", state, True)
    """

    def __init__(self) -> None:
        self._sensors: Set[OperatorSensor] = set()

    def add(self, sensor: OperatorSensor) -> None:
        """Add a sensor to the delegate."""
        logger.info(f"Adding sensor: {sensor.__class__.__name__}")
        self._sensors.add(sensor)

    def remove(self, sensor: OperatorSensor) -> None:
        """Remove a sensor from the delegate."""
        logger.info(f"Removing sensor: {sensor.__class__.__name__}")
        self._sensors.discard(sensor)

    def clear(self) -> None:
        """Remove all sensors from the delegate."""
        logger.info(f"Clearing {len(self._sensors)} sensors")
        self._sensors.clear()

    def _fan_out(self, hook: str, *args: Any) -> None:
        for sensor in self._sensors:
            try:
                getattr(sensor, hook)(*args)
            except Exception as e:
                logger.error(
                    f"Error in {sensor.__class__.__name__}.{hook}: {e}",
                    exc_info=True,
                )

    # =============================================================================
    # Reconciliation Lifecycle Hooks
    # =============================================================================

    def on_reconcile_start(
        self,
        controller_name: str,
        namespace: str,
        trigger_source: str,
    ) -> Optional[Dict[OperatorSensor, Any]]:
        """Delegate reconcile_start to all sensors.

        Returns:
            Dict mapping each sensor to its returned state, or None if no sensors
        """
        if not self._sensors:
            return None

        states = {}
        for sensor in self._sensors:
            try:
                state = sensor.on_reconcile_start(controller_name, namespace, trigger_source)
                if state is not None:
                    states[sensor] = state
            except Exception as e:
                logger.error(
                    f"Error in {sensor.__class__.__name__}.on_reconcile_start: {e}",
                    exc_info=True,
                )

        return states if states else None

    def on_reconcile_complete(
        self,
        controller_name: str,
        namespace: str,
        state: Optional[Dict[OperatorSensor, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Delegate reconcile_complete to all sensors with their specific state."""
        for sensor in self._sensors:
            try:
                sensor_state = state.get(sensor) if state else None
                sensor.on_reconcile_complete(controller_name, namespace, sensor_state, success, error)
            except Exception as e:
                logger.error(
                    f"Error in {sensor.__class__.__name__}.on_reconcile_complete: {e}",
                    exc_info=True,
                )

    def on_reconcile_queued(self, controller_name: str, namespace: str, queue_depth: int) -> None:
        self._fan_out("on_reconcile_queued", controller_name, namespace, queue_depth)

    def on_reconcile_dequeued(self, controller_name: str, namespace: str, wait_time: float) -> None:
        self._fan_out("on_reconcile_dequeued", controller_name, namespace, wait_time)

    def on_reconcile_skipped(
        self, controller_name: str, namespace: str, management_state: str
    ) -> None:
        self._fan_out("on_reconcile_skipped", controller_name, namespace, management_state)

    def on_reconcile_retry(
        self, controller_name: str, namespace: str, retries: int, delay: float
    ) -> None:
        self._fan_out("on_reconcile_retry", controller_name, namespace, retries, delay)

    # =============================================================================
    # Status Hooks
    # =============================================================================

    def on_conditions_evaluated(
        self, controller_name: str, namespace: str, conditions: List[Any]
    ) -> None:
        self._fan_out("on_conditions_evaluated", controller_name, namespace, conditions)

    def on_status_update_failed(self, name: str, namespace: str, error: Exception) -> None:
        self._fan_out("on_status_update_failed", name, namespace, error)

    def on_version_changed(self, operand: str, previous: Optional[str], version: str) -> None:
        self._fan_out("on_version_changed", operand, previous, version)

    def on_namespace_deleted(self, controller_name: str, namespace: str) -> None:
        self._fan_out("on_namespace_deleted", controller_name, namespace)
