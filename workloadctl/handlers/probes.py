import datetime
import kopf
from workloadctl.handlers.workload import versions


# Liveness probe
@kopf.on.probe(id='now')
def get_current_timestamp(**kwargs):
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


@kopf.on.probe(id='versions')
def get_operand_versions(**kwargs):
    return {key: recorder.get_versions() for key, recorder in versions.items()}
