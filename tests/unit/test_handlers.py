"""Unit tests for the kopf process layer."""

import logging
import pytest
from unittest.mock import AsyncMock, Mock
from kubernetes_asyncio.client import ApiException
from workloadctl.controller import WORK_QUEUE_KEY, WorkloadController
from workloadctl.handlers import workload as handlers
from workloadctl.resources import DeploymentDelegate, WorkloadOperatorResource
from workloadctl.types.schemas import WorkloadOperatorSpecSchema
from workloadctl.types.settings import Settings

KEY = "operators/apiserver"
logger = logging.getLogger(__name__)


@pytest.fixture(autouse=True)
def clean_state():
    yield
    for task in handlers.retries.values():
        task.cancel()
    for registry in (
        handlers.controllers,
        handlers.queues,
        handlers.limiters,
        handlers.versions,
        handlers.triggers,
        handlers.retries,
    ):
        registry.clear()


@pytest.fixture
def conf():
    return Settings(conditions_prefix="Default", operand_version="4.15.0", work_queue_max_depth=4)


def fake_controller(sync=None):
    controller = Mock()
    controller.name = "apiserverWorkloadController"
    controller.target_namespace = "openshift-apiserver"
    controller.sync = sync or AsyncMock()
    return controller


class TestBuildController:
    """Tests for wiring a controller from the custom resource spec."""

    def test_wiring(self, conf):
        spec = WorkloadOperatorSpecSchema().load(
            {
                "targetNamespace": "openshift-apiserver",
                "conditionsPrefix": "APIServer",
                "workload": {"name": "apiserver", "image": "quay.io/openshift/apiserver:4.15"},
            }
        )

        controller = handlers.build_controller("apiserver", "operators", spec, conf)

        assert isinstance(controller, WorkloadController)
        assert controller.name == "apiserverWorkloadController"
        assert controller.target_namespace == "openshift-apiserver"
        assert isinstance(controller.state, WorkloadOperatorResource)
        assert isinstance(controller.delegate, DeploymentDelegate)
        assert controller.evaluator.types.available == "APIServerDeploymentAvailable"
        assert controller.evaluator.target_version == "4.15.0"
        assert controller.evaluator.versions is handlers.versions[KEY]

    def test_settings_fill_in_defaults(self, conf):
        spec = WorkloadOperatorSpecSchema().load(
            {
                "targetNamespace": "openshift-apiserver",
                "operandVersion": "4.16.0",
                "workload": {"name": "apiserver"},
            }
        )

        controller = handlers.build_controller("apiserver", "operators", spec, conf)

        assert controller.evaluator.types.available == "DefaultDeploymentAvailable"
        assert controller.evaluator.target_version == "4.16.0"


class TestRequestReconciliation:
    """Tests for queueing passes."""

    @pytest.mark.asyncio
    async def test_unknown_resource(self):
        assert await handlers.request_reconciliation(KEY, "timer") is False

    @pytest.mark.asyncio
    async def test_requests_are_merged(self, conf):
        queue = handlers.work_queue(KEY, conf)

        assert await handlers.request_reconciliation(KEY, "create") is True
        assert await handlers.request_reconciliation(KEY, "timer") is False
        assert queue.depth() == 1
        assert handlers.triggers[KEY] == "create"


class TestProcessNext:
    """Tests for running queued passes."""

    @pytest.mark.asyncio
    async def test_success(self, conf):
        queue = handlers.work_queue(KEY, conf)
        controller = fake_controller()
        handlers.controllers[KEY] = controller
        await handlers.request_reconciliation(KEY, "create")

        await handlers.process_next(KEY, logger)

        controller.sync.assert_awaited_once_with(trigger_source="create")
        assert queue.depth() == 0
        assert handlers.limiters[KEY].retries(WORK_QUEUE_KEY) == 0
        assert KEY not in handlers.retries

    @pytest.mark.asyncio
    async def test_failure_is_retried_with_backoff(self, conf):
        handlers.work_queue(KEY, conf)
        handlers.controllers[KEY] = fake_controller(AsyncMock(side_effect=RuntimeError("boom")))
        await handlers.request_reconciliation(KEY, "create")

        await handlers.process_next(KEY, logger)

        assert handlers.limiters[KEY].retries(WORK_QUEUE_KEY) == 1
        assert KEY in handlers.retries

    @pytest.mark.asyncio
    async def test_conflict_is_retried(self, conf):
        handlers.work_queue(KEY, conf)
        handlers.controllers[KEY] = fake_controller(
            AsyncMock(side_effect=ApiException(status=409, reason="Conflict"))
        )
        await handlers.request_reconciliation(KEY, "update")

        await handlers.process_next(KEY, logger)

        assert handlers.limiters[KEY].retries(WORK_QUEUE_KEY) == 1

    @pytest.mark.asyncio
    async def test_permanent_api_error_is_not_retried(self, conf):
        handlers.work_queue(KEY, conf)
        handlers.controllers[KEY] = fake_controller(
            AsyncMock(side_effect=ApiException(status=403, reason="Forbidden"))
        )
        await handlers.request_reconciliation(KEY, "update")

        await handlers.process_next(KEY, logger)

        assert handlers.limiters[KEY].retries(WORK_QUEUE_KEY) == 0
        assert KEY not in handlers.retries

    @pytest.mark.asyncio
    async def test_request_during_pass_runs_again(self, conf):
        queue = handlers.work_queue(KEY, conf)

        async def sync(trigger_source):
            await handlers.request_reconciliation(KEY, "deployment")

        handlers.controllers[KEY] = fake_controller(AsyncMock(side_effect=sync))
        await handlers.request_reconciliation(KEY, "create")

        await handlers.process_next(KEY, logger)

        assert queue.depth() == 1


class TestCleanup:
    """Tests for releasing a deleted resource."""

    @pytest.mark.asyncio
    async def test_cleanup(self, conf):
        handlers.work_queue(KEY, conf)
        handlers.controllers[KEY] = fake_controller()
        handlers.versions[KEY].set_version("operand-apiserver", "4.15.0")

        await handlers.cleanup(name="apiserver", namespace="operators", logger=logger)

        assert KEY not in handlers.controllers
        assert KEY not in handlers.queues
        assert KEY not in handlers.limiters
        assert KEY not in handlers.versions
