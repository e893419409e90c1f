from marshmallow import fields, validate
from workloadctl.types.base import BaseSchema
from workloadctl.types.models import Condition, ConditionStatus, GenerationStatus


class ConditionSchema(BaseSchema):
    """Schema for a status condition."""

    __model__ = Condition

    type = fields.Str(data_key="type", required=True)
    status = fields.Str(
        data_key="status",
        required=True,
        validate=validate.OneOf(
            [ConditionStatus.TRUE, ConditionStatus.FALSE, ConditionStatus.UNKNOWN]
        ),
    )
    reason = fields.Str(data_key="reason", allow_none=True, load_default=None)
    message = fields.Str(data_key="message", allow_none=True, load_default=None)


class GenerationStatusSchema(BaseSchema):
    """Schema for an entry of the status generations ledger."""

    __model__ = GenerationStatus

    group = fields.Str(data_key="group", required=True)
    resource = fields.Str(data_key="resource", required=True)
    namespace = fields.Str(data_key="namespace", required=True)
    name = fields.Str(data_key="name", required=True)
    last_generation = fields.Int(data_key="lastGeneration", required=True)
