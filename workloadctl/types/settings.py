import os
from typing import Any
import workloadctl

_TRUE, _FALSE = {"True", "true", "yes", "1"}, {"False", "false", "no", "0"}


def _getenv(name: str, *default: Any) -> Any:
    try:
        v = os.environ[name]
        if v in _TRUE:
            return True
        elif v in _FALSE:
            return False
        else:
            return v
    except KeyError:
        pass
    if default:
        return default[0]
    raise KeyError(name)


# ------------------------------------------------
# ---- Defaults and environment variables ----
# ------------------------------------------------

#: Prefix for condition types when the WorkloadOperator resource does not set one
CONDITIONS_PREFIX = str(_getenv("CONDITIONS_PREFIX", ""))

#: Prefix of the operand key under which versions are recorded
OPERAND_NAME_PREFIX = str(_getenv("OPERAND_NAME_PREFIX", "operand"))

#: Version reported for the operand once its rollout completes
OPERAND_VERSION = str(_getenv("OPERAND_VERSION", workloadctl.__version__))

#: Seconds between periodic resyncs of every WorkloadOperator resource
RESYNC_INTERVAL_SECONDS = float(_getenv("RESYNC_INTERVAL_SECONDS", 60.0))

#: Maximum number of pending reconciliation requests per resource
WORK_QUEUE_MAX_DEPTH = int(_getenv("WORK_QUEUE_MAX_DEPTH", 16))

#: Initial delay before retrying a failed reconciliation
RETRY_BASE_DELAY_SECONDS = float(_getenv("RETRY_BASE_DELAY_SECONDS", 0.005))

#: Upper bound of the exponential retry delay
RETRY_MAX_DELAY_SECONDS = float(_getenv("RETRY_MAX_DELAY_SECONDS", 1000.0))

#: Number of concurrent kopf workers
WORKER_LIMIT = int(_getenv("WORKER_LIMIT", 2))


class Settings:
    """Operator settings"""

    conditions_prefix: str = CONDITIONS_PREFIX
    operand_name_prefix: str = OPERAND_NAME_PREFIX
    operand_version: str = OPERAND_VERSION
    resync_interval_seconds: float = RESYNC_INTERVAL_SECONDS
    work_queue_max_depth: int = WORK_QUEUE_MAX_DEPTH
    retry_base_delay_seconds: float = RETRY_BASE_DELAY_SECONDS
    retry_max_delay_seconds: float = RETRY_MAX_DELAY_SECONDS
    worker_limit: int = WORKER_LIMIT

    def __init__(
        self,
        *args,
        conditions_prefix: str = None,
        operand_name_prefix: str = None,
        operand_version: str = None,
        resync_interval_seconds: float = None,
        work_queue_max_depth: int = None,
        retry_base_delay_seconds: float = None,
        retry_max_delay_seconds: float = None,
        worker_limit: int = None,
        **kwargs,
    ):
        if conditions_prefix is not None:
            self.conditions_prefix = conditions_prefix

        if operand_name_prefix is not None:
            self.operand_name_prefix = operand_name_prefix

        if operand_version is not None:
            self.operand_version = operand_version

        if resync_interval_seconds is not None:
            self.resync_interval_seconds = resync_interval_seconds

        if work_queue_max_depth is not None:
            self.work_queue_max_depth = work_queue_max_depth

        if retry_base_delay_seconds is not None:
            self.retry_base_delay_seconds = retry_base_delay_seconds

        if retry_max_delay_seconds is not None:
            self.retry_max_delay_seconds = retry_max_delay_seconds

        if worker_limit is not None:
            self.worker_limit = worker_limit
