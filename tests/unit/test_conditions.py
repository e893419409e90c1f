"""Unit tests for the condition evaluator."""

import pytest
from kubernetes_asyncio.client import ApiException
from conftest import make_workload
from workloadctl.controller.conditions import (
    AS_EXPECTED,
    MISSING_PRECONDITIONS_MESSAGE,
    NEW_GENERATION,
    NO_DEPLOYMENT,
    NO_POD,
    PRECONDITION_NOT_FULFILLED,
    SYNC_ERROR,
    UNAVAILABLE_POD,
)
from workloadctl.types.models import SyncOutcome
from workloadctl.utils.errors import AggregateError

AVAILABLE = "APIServerDeploymentAvailable"
DEGRADED = "APIServerDeploymentDegraded"
PROGRESSING = "APIServerDeploymentProgressing"
WORKLOAD_DEGRADED = "APIServerWorkloadDegraded"


class TestDeploymentDegraded:
    """Tests for the replica availability condition."""

    @pytest.mark.asyncio
    async def test_surge_is_not_degraded(self, evaluator, state):
        """More available replicas than desired during a rollout is healthy."""
        outcome = SyncOutcome(
            workload=make_workload(desired_replicas=3, available_replicas=4),
            config_at_highest_generation=True,
        )

        assert await evaluator.evaluate(outcome) is None

        degraded = state.condition(DEGRADED)
        assert degraded["status"] == "False"
        assert degraded["reason"] == AS_EXPECTED

    @pytest.mark.asyncio
    async def test_shortfall_is_degraded(self, evaluator, state):
        """The message reports how many instances are missing."""
        outcome = SyncOutcome(
            workload=make_workload(desired_replicas=3, available_replicas=1),
            config_at_highest_generation=True,
        )

        await evaluator.evaluate(outcome)

        degraded = state.condition(DEGRADED)
        assert degraded["status"] == "True"
        assert degraded["reason"] == UNAVAILABLE_POD
        assert degraded["message"].startswith(
            "2 of 3 requested instances are unavailable for apiserver.openshift-apiserver ("
        )
        assert "CrashLoopBackOff" in degraded["message"]

    @pytest.mark.asyncio
    async def test_pod_diagnostic_failure_is_reported_inline(self, evaluator, state):
        """Failing to list pods degrades the message, not the pass."""

        async def failing_pod_status(workload):
            raise RuntimeError("pods are forbidden")

        evaluator.pod_status = failing_pod_status
        outcome = SyncOutcome(
            workload=make_workload(available_replicas=1),
            config_at_highest_generation=True,
        )

        assert await evaluator.evaluate(outcome) is None

        message = state.condition(DEGRADED)["message"]
        assert message.endswith("(failed to get pod containers details: pods are forbidden)")


class TestDeploymentAvailable:
    """Tests for the available condition."""

    @pytest.mark.asyncio
    async def test_no_pods_available(self, evaluator, state):
        outcome = SyncOutcome(
            workload=make_workload(available_replicas=0), config_at_highest_generation=True
        )

        await evaluator.evaluate(outcome)

        available = state.condition(AVAILABLE)
        assert available["status"] == "False"
        assert available["reason"] == NO_POD
        assert available["message"] == "no apiserver.openshift-apiserver pods available on any node."

    @pytest.mark.asyncio
    async def test_one_pod_is_enough(self, evaluator, state):
        outcome = SyncOutcome(
            workload=make_workload(available_replicas=1), config_at_highest_generation=True
        )

        await evaluator.evaluate(outcome)

        assert state.condition(AVAILABLE)["status"] == "True"
        assert state.condition(AVAILABLE)["reason"] == AS_EXPECTED


class TestDeploymentProgressing:
    """Tests for the progressing condition."""

    @pytest.mark.asyncio
    async def test_new_generation(self, evaluator, state):
        outcome = SyncOutcome(
            workload=make_workload(generation=3, observed_generation=2),
            config_at_highest_generation=True,
        )

        await evaluator.evaluate(outcome)

        progressing = state.condition(PROGRESSING)
        assert progressing["status"] == "True"
        assert progressing["reason"] == NEW_GENERATION
        assert progressing["message"] == (
            "deployment/apiserver.openshift-apiserver: observed generation is 2, "
            "desired generation is 3."
        )
        # Progressing and degraded are independent.
        assert state.condition(DEGRADED)["status"] == "False"

    @pytest.mark.asyncio
    async def test_settled(self, evaluator, state):
        await evaluator.evaluate(
            SyncOutcome(workload=make_workload(), config_at_highest_generation=True)
        )

        assert state.condition(PROGRESSING)["status"] == "False"
        assert state.condition(PROGRESSING)["reason"] == AS_EXPECTED


class TestMissingWorkload:
    """Tests for a Deployment that could not be retrieved."""

    @pytest.mark.asyncio
    async def test_all_conditions_in_one_write(self, evaluator, state):
        await evaluator.evaluate(SyncOutcome(workload=None))

        assert state.update_calls == 1
        message = "deployment/openshift-apiserver: could not be retrieved"
        assert state.condition(AVAILABLE)["status"] == "False"
        assert state.condition(AVAILABLE)["reason"] == NO_DEPLOYMENT
        assert state.condition(AVAILABLE)["message"] == message
        assert state.condition(PROGRESSING)["status"] == "True"
        assert state.condition(PROGRESSING)["reason"] == NO_DEPLOYMENT
        assert state.condition(DEGRADED)["status"] == "True"
        assert state.condition(DEGRADED)["reason"] == NO_DEPLOYMENT
        assert state.condition(WORKLOAD_DEGRADED)["status"] == "False"

    @pytest.mark.asyncio
    async def test_no_generation_recorded(self, evaluator, state, versions):
        await evaluator.evaluate(SyncOutcome(workload=None, config_at_highest_generation=True))

        assert "generations" not in state.status
        assert versions.get_versions() == {}


class TestWorkloadDegraded:
    """Tests for sync errors reported by the delegate."""

    @pytest.mark.asyncio
    async def test_sync_errors_are_joined_and_returned(self, evaluator, state):
        errors = [RuntimeError("first"), ApiException(status=500, reason="boom")]
        outcome = SyncOutcome(workload=make_workload(), errors=errors)

        error = await evaluator.evaluate(outcome)

        assert isinstance(error, AggregateError)
        assert list(error) == errors
        workload_degraded = state.condition(WORKLOAD_DEGRADED)
        assert workload_degraded["status"] == "True"
        assert workload_degraded["reason"] == SYNC_ERROR
        assert workload_degraded["message"] == f"first\n{errors[1]}\n"

    @pytest.mark.asyncio
    async def test_no_errors(self, evaluator, state):
        outcome = SyncOutcome(workload=make_workload(), config_at_highest_generation=True)

        assert await evaluator.evaluate(outcome) is None
        assert state.condition(WORKLOAD_DEGRADED)["status"] == "False"


class TestPreconditionFailed:
    """Tests for the conditions published when preconditions are not met."""

    @pytest.mark.asyncio
    async def test_without_errors(self, evaluator, state):
        assert await evaluator.precondition_failed([None]) is None

        assert state.update_calls == 1
        assert state.condition(AVAILABLE)["reason"] == PRECONDITION_NOT_FULFILLED
        assert state.condition(PROGRESSING)["status"] == "False"
        degraded = state.condition(DEGRADED)
        assert degraded["status"] == "True"
        assert degraded["reason"] == PRECONDITION_NOT_FULFILLED
        assert degraded["message"] == MISSING_PRECONDITIONS_MESSAGE
        assert state.condition(WORKLOAD_DEGRADED)["status"] == "False"

    @pytest.mark.asyncio
    async def test_with_error(self, evaluator, state):
        error = await evaluator.precondition_failed([RuntimeError("namespace lookup failed")])

        assert str(error) == "namespace lookup failed\n"
        assert state.condition(DEGRADED)["message"] == "namespace lookup failed\n"


class TestEvaluation:
    """Tests for properties of the evaluation as a whole."""

    @pytest.mark.asyncio
    async def test_idempotent(self, evaluator, state):
        """Evaluating the same outcome twice leaves the status byte-identical."""
        outcome = SyncOutcome(
            workload=make_workload(available_replicas=2), config_at_highest_generation=True
        )

        await evaluator.evaluate(outcome)
        first = state.status
        await evaluator.evaluate(outcome)

        assert state.status == first
        assert state.writes == 1

    @pytest.mark.asyncio
    async def test_conditions_are_prefixed(self, evaluator, state):
        await evaluator.evaluate(SyncOutcome(workload=make_workload()))

        types = [cond["type"] for cond in state.status["conditions"]]
        assert types == [AVAILABLE, DEGRADED, PROGRESSING, WORKLOAD_DEGRADED]

    @pytest.mark.asyncio
    async def test_generation_is_recorded(self, evaluator, state):
        await evaluator.evaluate(SyncOutcome(workload=make_workload(generation=5, observed_generation=5)))

        assert state.status["generations"] == [
            {
                "group": "apps",
                "resource": "deployments",
                "namespace": "openshift-apiserver",
                "name": "apiserver",
                "lastGeneration": 5,
            }
        ]

    @pytest.mark.asyncio
    async def test_status_write_failure_propagates(self, evaluator, state):
        state.fail_with = ApiException(status=409, reason="Conflict")

        with pytest.raises(ApiException):
            await evaluator.evaluate(SyncOutcome(workload=make_workload()))


class TestConditionSerialization:
    """Tests for how conditions land in the status document."""

    @pytest.mark.asyncio
    async def test_unset_fields_are_omitted(self, evaluator, state):
        await evaluator.evaluate(
            SyncOutcome(workload=make_workload(), config_at_highest_generation=True)
        )

        workload_degraded = state.condition(WORKLOAD_DEGRADED)
        assert "reason" not in workload_degraded
        assert "message" not in workload_degraded
        for cond in state.status["conditions"]:
            assert None not in cond.values()

    @pytest.mark.asyncio
    async def test_recovery_clears_previous_message(self, evaluator, state):
        await evaluator.evaluate(
            SyncOutcome(workload=make_workload(), errors=[RuntimeError("apply failed")])
        )
        first_transition = state.condition(AVAILABLE)["lastTransitionTime"]

        await evaluator.evaluate(
            SyncOutcome(workload=make_workload(), config_at_highest_generation=True)
        )

        workload_degraded = state.condition(WORKLOAD_DEGRADED)
        assert workload_degraded["status"] == "False"
        assert "reason" not in workload_degraded
        assert "message" not in workload_degraded
        assert state.condition(AVAILABLE)["lastTransitionTime"] == first_transition
