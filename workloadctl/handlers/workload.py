import asyncio
import kopf
import logging
from collections import defaultdict
from typing import Dict, Optional
from kubernetes_asyncio.client import ApiException
from marshmallow import ValidationError
from workloadctl.common.models.labels import Labels
from workloadctl.controller import (
    ConditionEvaluator,
    ItemExponentialRateLimiter,
    KopfEventRecorder,
    VersionRecorder,
    WORK_QUEUE_KEY,
    WorkloadController,
    WorkQueue,
)
from workloadctl.resources import (
    BaseResource,
    DeploymentDelegate,
    DeploymentPods,
    NamespaceRemover,
    WorkloadOperatorResource,
)
from workloadctl.types.models import WorkloadOperatorSpec
from workloadctl.types.schemas import WorkloadOperatorSpecSchema
from workloadctl.types.settings import RESYNC_INTERVAL_SECONDS, Settings
from workloadctl.utils.errors import convert_api_exception

KIND = WorkloadOperatorResource.KIND
INVALID_SPEC = "InvalidSpec"

# Per resource state, keyed by "<namespace>/<name>"
controllers: Dict[str, WorkloadController] = {}
queues: Dict[str, WorkQueue] = {}
limiters: Dict[str, ItemExponentialRateLimiter] = {}
versions: Dict[str, VersionRecorder] = defaultdict(VersionRecorder)
triggers: Dict[str, str] = {}
retries: Dict[str, asyncio.Task] = {}


class TimerLogFilter(logging.Filter):
    def filter(self, record):
        """Timer logs are noisy so we filter them out."""
        return "Timer " not in record.getMessage()


kopf_logger = logging.getLogger("kopf.objects")
kopf_logger.addFilter(TimerLogFilter())


def resource_key(namespace: str, name: str) -> str:
    return f"{namespace}/{name}"


def settings_from(memo) -> Settings:
    return getattr(memo, "conf", None) or Settings()


def work_queue(key: str, conf: Settings) -> WorkQueue:
    if key not in queues:
        queues[key] = WorkQueue(maxsize=conf.work_queue_max_depth)
        limiters[key] = ItemExponentialRateLimiter(
            base_delay=conf.retry_base_delay_seconds,
            max_delay=conf.retry_max_delay_seconds,
        )
    return queues[key]


def build_controller(
    name: str,
    namespace: str,
    spec: WorkloadOperatorSpec,
    conf: Settings,
    body=None,
    logger: logging.Logger = None,
) -> WorkloadController:
    """Wire a controller for one WorkloadOperator resource."""
    state = WorkloadOperatorResource(name, namespace, logger=logger)
    delegate = DeploymentDelegate(name, spec.target_namespace, spec.workload, logger=logger)
    evaluator = ConditionEvaluator(
        state=state,
        versions=versions[resource_key(namespace, name)],
        pod_status=DeploymentPods(),
        target_namespace=spec.target_namespace,
        target_version=spec.operand_version or conf.operand_version,
        operand_name_prefix=conf.operand_name_prefix,
        conditions_prefix=spec.conditions_prefix or conf.conditions_prefix,
        name=f"{name}WorkloadController",
        logger=logger,
    )
    return WorkloadController(
        name,
        spec.target_namespace,
        state=state,
        namespace_deleter=NamespaceRemover(),
        delegate=delegate,
        evaluator=evaluator,
        events=KopfEventRecorder(body) if body is not None else None,
        logger=logger,
    )


async def request_reconciliation(key: str, trigger_source: str) -> bool:
    """Queue a pass for ``key``. Requests for a pass that is already queued are merged."""
    queue = queues.get(key)
    if queue is None:
        return False
    added = await queue.add(WORK_QUEUE_KEY)
    if added:
        triggers[key] = trigger_source
    controller = controllers.get(key)
    if controller and WorkloadController.sensor:
        WorkloadController.sensor.on_reconcile_queued(
            controller.name, controller.target_namespace, queue.depth()
        )
    return added


async def requeue_after(key: str, delay: float) -> None:
    await asyncio.sleep(delay)
    retries.pop(key, None)
    await request_reconciliation(key, "retry")


def schedule_retry(
    key: str,
    item,
    limiter: ItemExponentialRateLimiter,
    controller: WorkloadController,
    logger: logging.Logger,
) -> None:
    delay = limiter.when(item)
    logger.info(f"Retrying {key} in {delay:.3f}s (attempt {limiter.retries(item)})")
    if WorkloadController.sensor:
        WorkloadController.sensor.on_reconcile_retry(
            controller.name, controller.target_namespace, limiter.retries(item), delay
        )
    pending = retries.pop(key, None)
    if pending is not None:
        pending.cancel()
    retries[key] = asyncio.create_task(requeue_after(key, delay))


async def process_next(key: str, logger: logging.Logger) -> None:
    """Run one queued pass for ``key``."""
    queue, limiter = queues[key], limiters[key]
    item = await queue.get()
    try:
        controller = controllers.get(key)
        if controller is None:
            return
        if WorkloadController.sensor:
            WorkloadController.sensor.on_reconcile_dequeued(
                controller.name, controller.target_namespace, queue.wait_time(item)
            )
        try:
            await controller.sync(trigger_source=triggers.pop(key, "request"))
        except ApiException as ex:
            try:
                convert_api_exception(ex)
            except kopf.PermanentError as perm:
                # Retrying cannot help; wait for the next change or resync.
                logger.error(f"Reconciliation of {key} failed: {perm}")
                limiter.forget(item)
            except kopf.TemporaryError as temp:
                logger.warning(f"Reconciliation of {key} failed: {temp}")
                schedule_retry(key, item, limiter, controller, logger)
        except Exception as ex:
            logger.error(f"Reconciliation of {key} failed: {ex}")
            schedule_retry(key, item, limiter, controller, logger)
        else:
            limiter.forget(item)
    finally:
        await queue.done(item)


@kopf.on.resume(kind=KIND)
@kopf.on.create(kind=KIND)
@kopf.on.update(kind=KIND)
async def reconciliation(body, spec, name, namespace, logger, memo, reason, **kwargs):
    """Build the controller for a WorkloadOperator and request a pass."""
    conf = settings_from(memo)
    try:
        spec_model: WorkloadOperatorSpec = WorkloadOperatorSpecSchema().load(dict(spec))
    except ValidationError as ex:
        kopf.warn(body, reason=INVALID_SPEC, message=f"Invalid spec: {ex.messages}")
        raise kopf.PermanentError(f"Invalid spec: {ex.messages}")

    key = resource_key(namespace, name)
    controllers[key] = build_controller(name, namespace, spec_model, conf, body=body, logger=logger)
    work_queue(key, conf)
    await request_reconciliation(key, str(getattr(reason, "value", reason)))


@kopf.on.delete(kind=KIND, optional=True)
async def cleanup(name, namespace, logger, **kwargs):
    """Forget everything kept for a deleted WorkloadOperator."""
    key = resource_key(namespace, name)
    pending = retries.pop(key, None)
    if pending is not None:
        pending.cancel()
    controllers.pop(key, None)
    queues.pop(key, None)
    limiters.pop(key, None)
    versions.pop(key, None)
    triggers.pop(key, None)
    logger.info(f"Released controller for {key}")


@kopf.timer(KIND, initial_delay=RESYNC_INTERVAL_SECONDS, interval=RESYNC_INTERVAL_SECONDS)
async def resync(name, namespace, **kwargs):
    """Periodic full sync."""
    await request_reconciliation(resource_key(namespace, name), "timer")


@kopf.on.event(
    "apps",
    "v1",
    "deployments",
    labels={Labels.KUBERNETES_MANAGED_BY_LABEL: BaseResource.OPERATOR_NAME},
)
async def deployment_event(name, labels, logger, **kwargs):
    """A change to a managed Deployment requests a pass of its owner."""
    owner: Optional[str] = labels.get(Labels.WORKLOADCTL_OPERATOR_LABEL)
    if not owner:
        return
    for key in list(controllers):
        if key.split("/", 1)[1] == owner:
            await request_reconciliation(key, "deployment")


@kopf.daemon(kind=KIND, cancellation_backoff=2.0, cancellation_timeout=5.0)
async def worker(stopped, name, namespace, logger, memo, **kwargs):
    """Drain the work queue of one WorkloadOperator."""
    key = resource_key(namespace, name)
    work_queue(key, settings_from(memo))
    while not stopped and key in queues:
        await process_next(key, logger)
