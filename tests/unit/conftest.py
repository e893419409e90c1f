"""Shared fakes for workload controller unit tests."""

import copy
import pytest
from typing import Dict, List, Optional
from workloadctl.controller import (
    ConditionEvaluator,
    Delegate,
    NamespaceDeleter,
    StateObserver,
    VersionRecorder,
)
from workloadctl.types.models import SyncOutcome, WorkloadObservation


class FakeState(StateObserver):
    """In-memory operator resource that counts effective status writes."""

    def __init__(self, management_state="Managed", status: Dict = None):
        self.management_state = management_state
        self.status = status or {}
        self.update_calls = 0
        self.writes = 0
        self.fail_with: Optional[Exception] = None

    async def get_management_state(self):
        return self.management_state

    async def get_status(self):
        return self.status

    async def update_status(self, *mutators):
        self.update_calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        old = copy.deepcopy(self.status)
        new = copy.deepcopy(self.status)
        for mutate in mutators:
            mutate(new)
        if new != old:
            self.writes += 1
            self.status = new
        return old, new

    def condition(self, type_: str) -> Optional[Dict]:
        for cond in self.status.get("conditions", []):
            if cond["type"] == type_:
                return cond
        return None


class FakeNamespaceDeleter(NamespaceDeleter):
    def __init__(self, error: Exception = None):
        self.error = error
        self.deleted: List[str] = []

    async def delete(self, namespace):
        self.deleted.append(namespace)
        if self.error is not None:
            raise self.error


class FakeDelegate(Delegate):
    def __init__(self, fulfilled=True, precondition_error=None, outcome: SyncOutcome = None):
        self.fulfilled = fulfilled
        self.precondition_error = precondition_error
        self.outcome = outcome or SyncOutcome(workload=make_workload(), config_at_highest_generation=True)
        self.sync_calls = 0

    async def precondition_fulfilled(self):
        if self.precondition_error is not None:
            raise self.precondition_error
        return self.fulfilled

    async def sync(self):
        self.sync_calls += 1
        return self.outcome


def make_workload(**overrides) -> WorkloadObservation:
    values = dict(
        name="apiserver",
        namespace="openshift-apiserver",
        generation=2,
        observed_generation=2,
        desired_replicas=3,
        available_replicas=3,
        updated_replicas=3,
        pod_labels={"app": "apiserver"},
    )
    values.update(overrides)
    return WorkloadObservation(**values)


@pytest.fixture
def state():
    return FakeState()


@pytest.fixture
def versions():
    return VersionRecorder()


@pytest.fixture
def pod_status():
    async def _pod_status(workload):
        return ['container "apiserver" of pod "apiserver-1" is waiting: "CrashLoopBackOff" - "back-off"']

    return _pod_status


@pytest.fixture
def evaluator(state, versions, pod_status):
    return ConditionEvaluator(
        state=state,
        versions=versions,
        pod_status=pod_status,
        target_namespace="openshift-apiserver",
        target_version="4.15.0",
        operand_name_prefix="openshift",
        conditions_prefix="APIServer",
    )
