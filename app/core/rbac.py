# app/core/rbac.py
"""
Authorization policy.

Pure decision logic: given the acting user, an action and (optionally) the
target resource plus the requested changes, decide allow or deny. No I/O
happens here; endpoints load the target first and call `enforce()` on the
returned Decision.

Rules are evaluated top to bottom and the first match wins:

1. no actor                                   -> Unauthorized
2. delete / (de)activate a superAdmin user    -> Forbidden, for everyone
3. superAdmin                                 -> allowed
4. create location                            -> Forbidden
5. departmentAdmin edits an assigned location -> allowed, unless the
                                                 department would change
6. departmentAdmin creates/updates a user     -> target and resulting department
                                                 must be their own, never
                                                 superAdmin, never assignments
                                                 or active flag
7. delete / (de)activate users                -> Forbidden
8. admin reads + upload signing               -> any admin-class role
9. anything else                              -> Forbidden
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Union
import uuid

from app.core.exceptions import Forbidden, Unauthorized
from app.models.user import User, UserRole
from app.services.department_service import same_department_name


# ------------------------------------------------------------
# ACTORS (tagged union, built from the stored user)
# ------------------------------------------------------------
@dataclass(frozen=True)
class SuperAdmin:
    id: uuid.UUID


@dataclass(frozen=True)
class DepartmentAdmin:
    id: uuid.UUID
    department: str
    faculty: str
    assigned_locations: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class Visitor:
    id: uuid.UUID


Actor = Union[SuperAdmin, DepartmentAdmin, Visitor]


def actor_from_user(user: Optional[User]) -> Optional[Actor]:
    if user is None:
        return None

    if user.role == UserRole.SuperAdmin:
        return SuperAdmin(id=user.id)

    if user.role == UserRole.DepartmentAdmin:
        return DepartmentAdmin(
            id=user.id,
            department=user.department or "",
            faculty=user.faculty or "",
            assigned_locations=frozenset(str(loc) for loc in (user.assigned_locations or [])),
        )

    return Visitor(id=user.id)


def is_admin(actor: Optional[Actor]) -> bool:
    return isinstance(actor, (SuperAdmin, DepartmentAdmin))


# ------------------------------------------------------------
# ACTIONS / RESOURCES / TARGETS
# ------------------------------------------------------------
class Action(str, Enum):
    Read = "read"
    Create = "create"
    Update = "update"
    Delete = "delete"
    Activate = "activate"
    Deactivate = "deactivate"
    UploadMedia = "upload_media"
    SignUpload = "sign_upload"


class Resource(str, Enum):
    User = "user"
    Location = "location"
    Department = "department"
    Media = "media"


@dataclass(frozen=True)
class UserTarget:
    role: UserRole
    department: Optional[str] = None

    @classmethod
    def of(cls, user: User) -> "UserTarget":
        return cls(role=user.role, department=user.department)


@dataclass(frozen=True)
class LocationTarget:
    id: str
    department: str

    @classmethod
    def of(cls, location) -> "LocationTarget":
        return cls(id=str(location.id), department=location.department)


Target = Union[UserTarget, LocationTarget, None]


# ------------------------------------------------------------
# DECISION
# ------------------------------------------------------------
@dataclass(frozen=True)
class Decision:
    allowed: bool
    status_code: int = 200
    reason: str = ""

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def deny(reason: str, status_code: int = 403) -> Decision:
    return Decision(False, status_code, reason)


_ACTIVE_FLAG_ACTIONS = {Action.Delete, Action.Activate, Action.Deactivate}


def _changes_active_flag(changes: Mapping[str, Any]) -> bool:
    return changes.get("is_active") is not None


def authorize(
    actor: Optional[Actor],
    action: Action,
    resource: Resource,
    target: Target = None,
    changes: Optional[Mapping[str, Any]] = None,
) -> Decision:
    changes = changes or {}

    # 1. unauthenticated
    if actor is None:
        return deny("Authentication required.", 401)

    # 2. a superAdmin account can never be removed or switched off
    if resource == Resource.User and isinstance(target, UserTarget) and target.role == UserRole.SuperAdmin:
        if action in _ACTIVE_FLAG_ACTIONS:
            return deny("Cannot delete or deactivate super admin users")
        if action == Action.Update and changes.get("is_active") is False:
            return deny("Cannot delete or deactivate super admin users")

    # 3. superAdmin
    if isinstance(actor, SuperAdmin):
        return ALLOW

    # 4. location creation
    if resource == Resource.Location and action == Action.Create:
        return deny("Only super admin can create locations")

    # 5. location edits by department admins
    if resource == Resource.Location and action in (Action.Update, Action.Delete, Action.UploadMedia):
        if not isinstance(actor, DepartmentAdmin) or not isinstance(target, LocationTarget):
            return deny("Admin access required.")
        if target.id not in actor.assigned_locations:
            return deny("You can only modify locations assigned to you")
        new_department = changes.get("department")
        if (
            action == Action.Update
            and new_department is not None
            and not same_department_name(new_department, target.department)
        ):
            return deny("Department admins cannot change a location's department")
        return ALLOW

    # 6. user management by department admins
    if resource == Resource.User and action in (Action.Create, Action.Update):
        if not isinstance(actor, DepartmentAdmin) or not isinstance(target, UserTarget):
            return deny("Admin access required.")
        resulting_role = changes.get("role") or target.role
        if target.role == UserRole.SuperAdmin or resulting_role == UserRole.SuperAdmin:
            return deny("Only super admin can manage super admin users")
        if not same_department_name(target.department, actor.department):
            return deny("You can only manage users in your department")
        # only department admins carry a department, so any other role leaves it
        resulting_department = None
        if resulting_role == UserRole.DepartmentAdmin:
            resulting_department = changes.get("department", target.department)
        if not same_department_name(resulting_department, actor.department):
            return deny("You can only manage users in your department")
        if changes.get("assigned_locations") is not None:
            return deny("Only super admin can change assigned locations")
        if _changes_active_flag(changes):
            return deny("Only super admin can activate or deactivate users")
        return ALLOW

    # 7. removal / activation of users
    if resource == Resource.User and action in _ACTIVE_FLAG_ACTIONS:
        return deny("Super admin access required.")

    # 8. admin-class reads and upload signing
    if action == Action.Read and resource in (Resource.User, Resource.Location, Resource.Department):
        return ALLOW if is_admin(actor) else deny("Admin access required.")
    if resource == Resource.Media and action == Action.SignUpload:
        return ALLOW if is_admin(actor) else deny("Admin access required.")

    # 9. default deny (department writes land here for non-superAdmins)
    return deny("Access denied. Insufficient permissions.")


def enforce(decision: Decision) -> None:
    """Turn a negative decision into the matching HTTP error."""
    if decision.allowed:
        return
    if decision.status_code == 401:
        raise Unauthorized(decision.reason)
    raise Forbidden(decision.reason)
