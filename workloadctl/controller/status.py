from workloadctl.controller.base import StatusMutator
from workloadctl.types.models import Condition, GenerationStatus, WorkloadObservation
from workloadctl.types.schemas import ConditionSchema, GenerationStatusSchema
from workloadctl.utils.helpers import upsert_condition, upsert_generation


def update_condition_fn(condition: Condition) -> StatusMutator:
    """Mutator that upserts ``condition`` into ``status.conditions``."""
    # Unset fields are left out; the API server drops nulls from the stored status.
    serialized = {
        key: value
        for key, value in ConditionSchema().dump(condition).items()
        if value is not None
    }

    def _update(status):
        status["conditions"] = upsert_condition(status.get("conditions"), serialized)

    return _update


def update_generation_fn(workload: WorkloadObservation) -> StatusMutator:
    """Mutator that records the workload generation in ``status.generations``."""
    serialized = GenerationStatusSchema().dump(
        GenerationStatus(
            group=workload.group,
            resource=workload.resource,
            namespace=workload.namespace,
            name=workload.name,
            last_generation=workload.generation,
        )
    )

    def _update(status):
        status["generations"] = upsert_generation(status.get("generations"), serialized)

    return _update
