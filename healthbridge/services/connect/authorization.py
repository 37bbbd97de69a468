"""Permission checks for canonical data types."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum

from healthbridge.core.logging import get_logger
from healthbridge.services.connect.registry import resolve
from healthbridge.services.connect.stores.base import HealthStore, store_errors

logger = get_logger(__name__)


class AuthorizationStatus(str, Enum):
    """Outcome of comparing requested permissions with granted ones."""

    GRANTED = "granted"
    DENIED = "denied"
    REQUEST_REQUIRED = "request_required"


@dataclass(frozen=True)
class PermissionCheck:
    """Result of a permission check and the permissions still missing."""

    status: AuthorizationStatus
    missing: frozenset[str] = field(default_factory=frozenset)


def _required_permissions(read: Iterable[str], write: Iterable[str]) -> Iterator[str]:
    """Yield permission ids lazily, resolving each data type as it is reached."""
    for name in read:
        yield resolve(name).read_permission
    for name in write:
        yield resolve(name).write_permission


def check_permissions(
    read: Iterable[str],
    write: Iterable[str],
    granted: set[str],
    allow_request: bool,
) -> PermissionCheck:
    """
    Compute which requested permissions are missing.

    Without ``allow_request`` the check stops at the first missing
    permission and reports DENIED; later data types are never evaluated.
    With it, every missing permission is collected for one combined request.

    Args:
        read: Canonical data types needing read access
        write: Canonical data types needing write access
        granted: Permission ids currently granted
        allow_request: Whether missing permissions may be requested

    Returns:
        PermissionCheck with the status and the missing permission ids

    Raises:
        UnsupportedDataTypeError: If a data type name does not resolve
    """
    missing: set[str] = set()

    for permission in _required_permissions(read, write):
        if permission in granted:
            continue
        if not allow_request:
            return PermissionCheck(AuthorizationStatus.DENIED, frozenset({permission}))
        missing.add(permission)

    if missing:
        return PermissionCheck(AuthorizationStatus.REQUEST_REQUIRED, frozenset(missing))
    return PermissionCheck(AuthorizationStatus.GRANTED)


def authorize(
    store: HealthStore,
    read: Iterable[str],
    write: Iterable[str],
    allow_request: bool,
) -> bool:
    """
    Check, and optionally request, permissions for the given data types.

    Returns:
        True when every permission is held or the grant flow granted any,
        False otherwise (including an empty grant result).
    """
    logger.debug("checking authorization", allow_request=allow_request)

    with store_errors("get_granted_permissions"):
        granted = store.get_granted_permissions()

    check = check_permissions(read, write, granted, allow_request)

    if check.status is AuthorizationStatus.GRANTED:
        return True
    if check.status is AuthorizationStatus.DENIED:
        logger.info("Authorization denied", missing=sorted(check.missing))
        return False

    logger.info("requesting authorization", permissions=sorted(check.missing))
    with store_errors("request_permissions"):
        result = store.request_permissions(set(check.missing))

    if not result:
        logger.info("Authorization request declined")
        return False
    return True
