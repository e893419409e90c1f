import logging
from typing import Awaitable, Callable, Iterable, List, Optional
from workloadctl.controller.base import StateObserver, StatusMutator
from workloadctl.controller.status import update_condition_fn, update_generation_fn
from workloadctl.controller.versions import VersionRecorder
from workloadctl.types.models import (
    Condition,
    ConditionStatus,
    ConditionTypes,
    SyncOutcome,
    WorkloadObservation,
)
from workloadctl.utils.errors import AggregateError, aggregate, join_error_messages

PRECONDITION_NOT_FULFILLED = "PreconditionNotFulfilled"
SYNC_ERROR = "SyncError"
NO_DEPLOYMENT = "NoDeployment"
NO_POD = "NoPod"
NEW_GENERATION = "NewGeneration"
UNAVAILABLE_POD = "UnavailablePod"
AS_EXPECTED = "AsExpected"

MISSING_PRECONDITIONS_MESSAGE = "the operator didn't specify what preconditions are missing"

#: Returns one diagnostic line per unhealthy container of the workload's pods.
PodStatusFn = Callable[[WorkloadObservation], Awaitable[List[str]]]


class ConditionEvaluator:
    """Turns the outcome of a sync into the four workload conditions.

    Every evaluation writes the full condition set in a single status update:

    * ``<prefix>DeploymentAvailable``: at least one replica is available.
    * ``<prefix>DeploymentProgressing``: the Deployment controller has not yet
      observed the latest generation.
    * ``<prefix>DeploymentDegraded``: fewer replicas are available than desired.
      Surge above the desired count during a rollout is not degraded.
    * ``<prefix>WorkloadDegraded``: the delegate reported sync errors.

    Degraded and progressing are independent: a rollout in flight can be
    progressing without being degraded, and a workload stuck short of
    replicas is degraded without progressing.
    """

    sensor = None

    def __init__(
        self,
        state: StateObserver,
        versions: VersionRecorder,
        pod_status: PodStatusFn,
        target_namespace: str,
        target_version: str,
        operand_name_prefix: str,
        conditions_prefix: str = "",
        name: str = "WorkloadController",
        logger: logging.Logger = None,
    ) -> None:
        self.name = name
        self.state = state
        self.versions = versions
        self.pod_status = pod_status
        self.target_namespace = target_namespace
        self.target_version = target_version
        self.operand_name_prefix = operand_name_prefix
        self.types = ConditionTypes(conditions_prefix)
        self.logger = logger or logging.getLogger(__name__)

    async def precondition_failed(
        self, errors: Iterable[Optional[BaseException]]
    ) -> Optional[AggregateError]:
        """Publish the conditions for a workload whose preconditions are not met.

        Returns:
            The aggregate of ``errors``, or None when there were none.
        """
        errs = [err for err in errors if err is not None]
        conditions = self.precondition_conditions(errs)
        await self.publish(conditions)
        return aggregate(errs)

    async def evaluate(self, outcome: SyncOutcome) -> Optional[AggregateError]:
        """Publish the conditions derived from a sync outcome.

        Status write failures propagate. Otherwise returns the aggregate of
        the outcome errors, or None when there were none.
        """
        conditions = await self.derive_conditions(outcome)
        extra = []
        workload = outcome.workload
        if workload.present:
            self.advance_version(workload, outcome.config_at_highest_generation)
            extra.append(update_generation_fn(workload))
        await self.publish(conditions, *extra)
        return aggregate(outcome.errors)

    async def publish(self, conditions: List[Condition], *extra: StatusMutator) -> None:
        """Write ``conditions`` and any ``extra`` mutations in one status update."""
        mutators = [update_condition_fn(c) for c in conditions]
        await self.state.update_status(*mutators, *extra)
        if self.sensor:
            self.sensor.on_conditions_evaluated(self.name, self.target_namespace, conditions)

    def precondition_conditions(self, errors: List[BaseException]) -> List[Condition]:
        message = join_error_messages(errors) or MISSING_PRECONDITIONS_MESSAGE
        return [
            Condition(
                type=self.types.available,
                status=ConditionStatus.FALSE,
                reason=PRECONDITION_NOT_FULFILLED,
            ),
            Condition(
                type=self.types.degraded,
                status=ConditionStatus.TRUE,
                reason=PRECONDITION_NOT_FULFILLED,
                message=message,
            ),
            Condition(
                type=self.types.progressing,
                status=ConditionStatus.FALSE,
                reason=PRECONDITION_NOT_FULFILLED,
            ),
            Condition(type=self.types.workload_degraded, status=ConditionStatus.FALSE),
        ]

    async def derive_conditions(self, outcome: SyncOutcome) -> List[Condition]:
        """Compute available, degraded, progressing and workload degraded, in that order."""
        workload_degraded = self.workload_degraded_condition(outcome.errors)
        workload = outcome.workload

        if not workload.present:
            message = f"deployment/{self.target_namespace}: could not be retrieved"
            return [
                Condition(
                    type=self.types.available,
                    status=ConditionStatus.FALSE,
                    reason=NO_DEPLOYMENT,
                    message=message,
                ),
                Condition(
                    type=self.types.degraded,
                    status=ConditionStatus.TRUE,
                    reason=NO_DEPLOYMENT,
                    message=message,
                ),
                Condition(
                    type=self.types.progressing,
                    status=ConditionStatus.TRUE,
                    reason=NO_DEPLOYMENT,
                    message=message,
                ),
                workload_degraded,
            ]

        return [
            self.available_condition(workload),
            await self.degraded_condition(workload),
            self.progressing_condition(workload),
            workload_degraded,
        ]

    def workload_degraded_condition(self, errors: List[BaseException]) -> Condition:
        if errors:
            return Condition(
                type=self.types.workload_degraded,
                status=ConditionStatus.TRUE,
                reason=SYNC_ERROR,
                message=join_error_messages(errors),
            )
        return Condition(type=self.types.workload_degraded, status=ConditionStatus.FALSE)

    def available_condition(self, workload: WorkloadObservation) -> Condition:
        if workload.available_replicas == 0:
            return Condition(
                type=self.types.available,
                status=ConditionStatus.FALSE,
                reason=NO_POD,
                message=f"no {workload.name}.{self.target_namespace} pods available on any node.",
            )
        return Condition(
            type=self.types.available, status=ConditionStatus.TRUE, reason=AS_EXPECTED
        )

    def progressing_condition(self, workload: WorkloadObservation) -> Condition:
        if not workload.at_highest_generation:
            return Condition(
                type=self.types.progressing,
                status=ConditionStatus.TRUE,
                reason=NEW_GENERATION,
                message=(
                    f"deployment/{workload.name}.{self.target_namespace}: "
                    f"observed generation is {workload.observed_generation}, "
                    f"desired generation is {workload.generation}."
                ),
            )
        return Condition(
            type=self.types.progressing, status=ConditionStatus.FALSE, reason=AS_EXPECTED
        )

    async def degraded_condition(self, workload: WorkloadObservation) -> Condition:
        if workload.all_available:
            return Condition(
                type=self.types.degraded, status=ConditionStatus.FALSE, reason=AS_EXPECTED
            )
        try:
            containers_status = await self.pod_status(workload)
        except Exception as ex:
            self.logger.warning(f"Failed to get pod containers details for {workload.name}: {ex}")
            containers_status = [f"failed to get pod containers details: {ex}"]
        return Condition(
            type=self.types.degraded,
            status=ConditionStatus.TRUE,
            reason=UNAVAILABLE_POD,
            message=(
                f"{workload.unavailable_replicas} of {workload.desired_replicas} requested "
                f"instances are unavailable for {workload.name}.{self.target_namespace} "
                f"({', '.join(containers_status)})"
            ),
        )

    def version_gate_open(
        self, workload: WorkloadObservation, config_at_highest_generation: bool
    ) -> bool:
        """Whether the rollout of the target version can be considered complete.

        A version bump changes the image pull spec, which starts a new
        Deployment generation and closes the gate until that rollout is done.
        """
        return (
            workload.at_highest_generation
            and workload.all_available
            and workload.all_updated
            and config_at_highest_generation
        )

    def advance_version(
        self, workload: WorkloadObservation, config_at_highest_generation: bool
    ) -> bool:
        if not self.version_gate_open(workload, config_at_highest_generation):
            return False
        self.versions.set_version(
            f"{self.operand_name_prefix}-{workload.name}", self.target_version
        )
        return True
