from .base import Delegate, NamespaceDeleter, StateObserver, StatusMutator
from .conditions import ConditionEvaluator
from .events import EventRecorder, KopfEventRecorder, LoggingEventRecorder
from .queue import ItemExponentialRateLimiter, WorkQueue
from .scheduling import NodeCounter, ensure_at_most_one_pod_per_node
from .versions import VersionRecorder
from .workload import WORK_QUEUE_KEY, WorkloadController

__all__ = [
    "Delegate",
    "NamespaceDeleter",
    "StateObserver",
    "StatusMutator",
    "ConditionEvaluator",
    "EventRecorder",
    "KopfEventRecorder",
    "LoggingEventRecorder",
    "ItemExponentialRateLimiter",
    "WorkQueue",
    "NodeCounter",
    "ensure_at_most_one_pod_per_node",
    "VersionRecorder",
    "WORK_QUEUE_KEY",
    "WorkloadController",
]
