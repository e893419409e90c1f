import json
import kopf
import kubernetes_asyncio
from typing import Iterable, List, Optional

_ALREADY_EXISTS = "alreadyexists"
_NOT_FOUND = "notfound"


class InvalidArgumentError(ValueError):
    """Raised when a caller supplies input a policy cannot be built from."""


class AggregateError(Exception):
    """Ordered collection of errors raised as one.

    The message is every error text terminated by a newline, with no escaping.
    """

    def __init__(self, errors: List[BaseException]) -> None:
        self.errors = list(errors)
        super().__init__(join_error_messages(self.errors))

    def __iter__(self):
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)


def join_error_messages(errors: Iterable[BaseException]) -> str:
    return "".join(f"{err}\n" for err in errors)


def aggregate(errors: Optional[Iterable[Optional[BaseException]]]) -> Optional[AggregateError]:
    """Return an AggregateError of the non-None errors, or None when there are none."""
    errs = [err for err in (errors or []) if err is not None]
    if not errs:
        return None
    return AggregateError(errs)


def _reason(ex: kubernetes_asyncio.client.ApiException) -> str:
    try:
        err = json.loads(ex.body) if ex.body else {}
    except (json.JSONDecodeError, TypeError):
        return ""
    return str(err.get("reason", "")).lower()


def already_exists_error(ex: BaseException) -> bool:
    if not isinstance(ex, kubernetes_asyncio.client.ApiException):
        return False
    return ex.status == 409 and _reason(ex) in ("", _ALREADY_EXISTS)


def not_found_error(ex: BaseException) -> bool:
    if not isinstance(ex, kubernetes_asyncio.client.ApiException):
        return False
    return ex.status == 404 or _reason(ex) == _NOT_FOUND


def convert_api_exception(ex: kubernetes_asyncio.client.ApiException, permanent: bool = None):
    """
    Convert kubernetes ApiException to a Kopf-friendly exception.

    Args:
        ex: The ApiException to convert
        permanent: If True, raises PermanentError (won't retry). If False, raises TemporaryError (will retry).
                   If None, automatically determines based on status code.

    Raises:
        kopf.TemporaryError or kopf.PermanentError with serializable error details
    """
    if not isinstance(ex, kubernetes_asyncio.client.ApiException):
        raise ex

    error_msg = f"Kubernetes API error ({ex.status}): {ex.reason}"
    try:
        if ex.body:
            body = json.loads(ex.body)
            if "message" in body:
                error_msg = f"{error_msg} - {body['message']}"
    except (json.JSONDecodeError, AttributeError, TypeError):
        pass

    # 4xx errors (except 408, 409 and 429) are typically permanent
    if permanent is None:
        is_permanent = ex.status is not None and 400 <= ex.status < 500 and ex.status not in [408, 409, 429]
    else:
        is_permanent = permanent

    if is_permanent:
        raise kopf.PermanentError(error_msg)
    else:
        raise kopf.TemporaryError(error_msg, delay=30)
