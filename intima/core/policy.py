"""
Capability checks.

Each operation names the capability it needs and calls :func:`authorize`.
Roles map to a base capability set; a user's ``permissions`` list can grant
extra capabilities by value (``"decide"``), and ``"admin"`` grants all of them.
"""

import enum
import logging

from intima.core.exceptions import Forbidden
from intima.models.enums import UserRole

logger = logging.getLogger(__name__)

ADMIN_PERMISSION = "admin"


class Capability(str, enum.Enum):
    SUBMIT = "submit"
    COMMENT = "comment"
    REVIEW_DEPARTMENT = "review_department"
    DECIDE = "decide"
    VALIDATE = "validate"
    MANAGE_USERS = "manage_users"
    MANAGE_AFFILIATES = "manage_affiliates"


ROLE_CAPABILITIES: dict[UserRole, frozenset[Capability]] = {
    UserRole.STUDENT: frozenset({Capability.SUBMIT, Capability.COMMENT, Capability.VALIDATE}),
    UserRole.INTIMA: frozenset(Capability),
}


def capabilities_for(user) -> frozenset[Capability]:
    granted = set(ROLE_CAPABILITIES.get(UserRole(user.role), frozenset()))
    for permission in user.permissions or []:
        if permission == ADMIN_PERMISSION:
            return frozenset(Capability)
        try:
            granted.add(Capability(permission))
        except ValueError:
            continue
    return frozenset(granted)


def has_capability(user, capability: Capability) -> bool:
    return capability in capabilities_for(user)


def authorize(user, capability: Capability) -> None:
    """Raise ``Forbidden`` unless ``user`` holds ``capability``.

    ``user`` is None when the caller did not identify itself; the check is
    then skipped.
    """
    if user is None:
        return
    if not has_capability(user, capability):
        logger.info("Denied %s to user %s (role %s)", capability.value, user.id, user.role)
        raise Forbidden(f"User {user.id} is not allowed to {capability.value.replace('_', ' ')}")
