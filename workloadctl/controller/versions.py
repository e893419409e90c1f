import logging
from typing import Dict, List
from workloadctl.types.models import VersionRecord

logger = logging.getLogger(__name__)


class VersionRecorder:
    """Keeps the versions of operands whose rollout has completed."""

    sensor = None

    def __init__(self) -> None:
        self._versions: Dict[str, str] = {}

    def set_version(self, operand: str, version: str) -> None:
        previous = self._versions.get(operand)
        if previous == version:
            return
        self._versions[operand] = version
        logger.info(f"Operand {operand} is now at version {version} (was {previous})")
        if self.sensor:
            self.sensor.on_version_changed(operand, previous, version)

    def get_versions(self) -> Dict[str, str]:
        return dict(self._versions)

    def records(self) -> List[VersionRecord]:
        return [
            VersionRecord(operand=operand, version=version)
            for operand, version in sorted(self._versions.items())
        ]
