import logging
from workloadctl.controller.base import Delegate, NamespaceDeleter, StateObserver
from workloadctl.controller.conditions import ConditionEvaluator
from workloadctl.controller.events import EventRecorder, LoggingEventRecorder
from workloadctl.types.models import ManagementState, PreconditionResult
from workloadctl.utils.errors import not_found_error

MANAGEMENT_STATE_UNKNOWN = "ManagementStateUnknown"

#: The controller manages exactly one workload, so every request shares this key.
WORK_QUEUE_KEY = "key"


class WorkloadController:
    """Generic controller for a workload backed by a Deployment.

    The delegate brings the desired workload into operation; the state it
    reports back, along with any errors, is converted into conditions and
    persisted in the operator status.
    """

    sensor = None

    def __init__(
        self,
        name: str,
        target_namespace: str,
        state: StateObserver,
        namespace_deleter: NamespaceDeleter,
        delegate: Delegate,
        evaluator: ConditionEvaluator,
        events: EventRecorder = None,
        logger: logging.Logger = None,
    ) -> None:
        self.name = f"{name}WorkloadController"
        self.target_namespace = target_namespace
        self.state = state
        self.namespace_deleter = namespace_deleter
        self.delegate = delegate
        self.evaluator = evaluator
        self.logger = logger or logging.getLogger(__name__)
        self.events = events or LoggingEventRecorder(self.logger)

    async def sync(self, trigger_source: str = "request") -> None:
        """Run one reconciliation pass.

        Raises:
            The error of a failed read, namespace deletion or status write, or
            an AggregateError of the precondition or delegate errors.
        """
        sensor_state = None
        if self.sensor:
            sensor_state = self.sensor.on_reconcile_start(
                self.name, self.target_namespace, trigger_source
            )
        try:
            await self._sync()
        except Exception as ex:
            if self.sensor:
                self.sensor.on_reconcile_complete(
                    self.name, self.target_namespace, sensor_state, False, ex
                )
            raise
        if self.sensor:
            self.sensor.on_reconcile_complete(
                self.name, self.target_namespace, sensor_state, True
            )

    async def _sync(self) -> None:
        management_state = await self.state.get_management_state()
        if not await self.should_sync(management_state):
            return

        precondition = await self.check_preconditions()
        if not precondition.fulfilled or precondition.error is not None:
            self.logger.info(
                f"{self.name}: preconditions not fulfilled ({precondition.error or 'no reason given'})"
            )
            error = await self.evaluator.precondition_failed([precondition.error])
            if error is not None:
                raise error
            return

        outcome = await self.delegate.sync()
        error = await self.evaluator.evaluate(outcome)
        if error is not None:
            raise error

    async def should_sync(self, management_state) -> bool:
        """Check the management state, probably set by a cluster administrator.

        A Removed state deletes the target namespace. None of the non managed
        states touch the status.
        """
        state = ManagementState.parse(management_state)
        if state is ManagementState.MANAGED:
            return True
        if state is ManagementState.UNMANAGED:
            self.logger.debug(f"{self.name}: operator is unmanaged, skipping sync")
        elif state is ManagementState.REMOVED:
            self.logger.info(
                f"{self.name}: operator is removed, deleting namespace {self.target_namespace}"
            )
            try:
                await self.namespace_deleter.delete(self.target_namespace)
            except Exception as ex:
                if not not_found_error(ex):
                    raise
                self.logger.debug(f"{self.name}: namespace {self.target_namespace} already gone")
            if self.sensor:
                self.sensor.on_namespace_deleted(self.name, self.target_namespace)
        else:
            raw = getattr(management_state, "value", management_state)
            self.events.warning(
                MANAGEMENT_STATE_UNKNOWN,
                f'Unrecognized operator management state "{raw}"',
            )
        if self.sensor:
            self.sensor.on_reconcile_skipped(self.name, self.target_namespace, state.value)
        return False

    async def check_preconditions(self) -> PreconditionResult:
        try:
            fulfilled = await self.delegate.precondition_fulfilled()
        except Exception as ex:
            return PreconditionResult(fulfilled=False, error=ex)
        return PreconditionResult(fulfilled=bool(fulfilled), error=None)

