from .condition import ConditionSchema, GenerationStatusSchema
from .operator_spec import WorkloadTemplateSchema, WorkloadOperatorSpecSchema

__all__ = [
    "ConditionSchema",
    "GenerationStatusSchema",
    "WorkloadTemplateSchema",
    "WorkloadOperatorSpecSchema",
]
