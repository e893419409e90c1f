import abc
from typing import Any, Callable, Dict, Tuple, Union
from workloadctl.types.models import ManagementState, SyncOutcome

#: A single status field mutation. Receives a mutable copy of the status document.
StatusMutator = Callable[[Dict[str, Any]], None]


class StateObserver(abc.ABC):
    """Read access to the operator resource plus its status update primitive."""

    @abc.abstractmethod
    async def get_management_state(self) -> Union[ManagementState, str]:
        """Return the management intent set on the operator resource."""

    @abc.abstractmethod
    async def get_status(self) -> Dict[str, Any]:
        """Return the currently published status document."""

    @abc.abstractmethod
    async def update_status(
        self, *mutators: StatusMutator
    ) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """Apply all mutators to the status document as one write.

        Returns:
            The status before and after the mutators were applied.
        """


class NamespaceDeleter(abc.ABC):
    @abc.abstractmethod
    async def delete(self, namespace: str) -> None:
        """Delete a namespace.

        Raises:
            ApiException with status 404 when the namespace is already gone.
        """


class Delegate(abc.ABC):
    """Workload specific logic the controller delegates to.

    A missing precondition is reported in the operator status: the workload is
    degraded, not available and not progressing. Errors raised from
    ``precondition_fulfilled`` end up in the condition message.
    """

    @abc.abstractmethod
    async def precondition_fulfilled(self) -> bool:
        """Whether all prerequisites are met and ``sync`` may run."""

    @abc.abstractmethod
    async def sync(self) -> SyncOutcome:
        """Bring the desired workload into operation and report what was observed."""
