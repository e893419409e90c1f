"""Workload controller sensor framework.

Hook based instrumentation of controller lifecycle events.

Key components:
- OperatorSensor: Base class defining the lifecycle hooks
- SensorDelegate: Fan-out of events to multiple sensor backends
- PrometheusMonitor: Prometheus metrics exporter
"""

from workloadctl.sensors.base import OperatorSensor
from workloadctl.sensors.delegate import SensorDelegate
from workloadctl.sensors.prometheus import PrometheusMonitor
from workloadctl.sensors.server import init_metrics_server

__all__ = [
    'OperatorSensor',
    'SensorDelegate',
    'PrometheusMonitor',
    'init_metrics_server',
]
