import uuid
import pytest

from app.core.exceptions import Forbidden, Unauthorized
from app.core.rbac import (
    Action,
    DepartmentAdmin,
    LocationTarget,
    Resource,
    SuperAdmin,
    UserTarget,
    Visitor,
    authorize,
    enforce,
)
from app.models.user import UserRole

LIBRARY_ID = str(uuid.uuid4())
LAB_ID = str(uuid.uuid4())

super_admin = SuperAdmin(id=uuid.uuid4())
cs_admin = DepartmentAdmin(
    id=uuid.uuid4(),
    department="Computer Science",
    faculty="Engineering",
    assigned_locations=frozenset({LAB_ID}),
)
visitor = Visitor(id=uuid.uuid4())

lab = LocationTarget(id=LAB_ID, department="Computer Science")
library = LocationTarget(id=LIBRARY_ID, department="Library")


def test_unauthenticated_is_401():
    decision = authorize(None, Action.Read, Resource.Location)
    assert not decision
    assert decision.status_code == 401


@pytest.mark.parametrize("actor", [super_admin, cs_admin, visitor])
@pytest.mark.parametrize("action", [Action.Delete, Action.Deactivate, Action.Activate])
def test_super_admin_accounts_cannot_be_removed(actor, action):
    decision = authorize(actor, action, Resource.User, UserTarget(role=UserRole.SuperAdmin))
    assert not decision
    assert decision.status_code == 403


def test_super_admin_cannot_be_deactivated_through_update():
    target = UserTarget(role=UserRole.SuperAdmin)
    assert not authorize(super_admin, Action.Update, Resource.User, target, {"is_active": False})
    assert authorize(super_admin, Action.Update, Resource.User, target, {"name": "Renamed"})


def test_super_admin_is_allowed_everything_else():
    assert authorize(super_admin, Action.Create, Resource.Location)
    assert authorize(super_admin, Action.Delete, Resource.Location, library)
    assert authorize(super_admin, Action.Create, Resource.Department)
    assert authorize(super_admin, Action.Delete, Resource.User, UserTarget(role=UserRole.DepartmentAdmin))


def test_only_super_admin_creates_locations():
    assert not authorize(cs_admin, Action.Create, Resource.Location)
    assert not authorize(visitor, Action.Create, Resource.Location)


def test_department_admin_edits_only_assigned_locations():
    assert authorize(cs_admin, Action.Update, Resource.Location, lab)
    assert authorize(cs_admin, Action.UploadMedia, Resource.Location, lab)
    assert authorize(cs_admin, Action.Delete, Resource.Location, lab)

    decision = authorize(cs_admin, Action.Update, Resource.Location, library)
    assert not decision
    assert decision.reason == "You can only modify locations assigned to you"


def test_department_admin_cannot_move_location_to_other_department():
    assert not authorize(cs_admin, Action.Update, Resource.Location, lab, {"department": "Library"})
    assert authorize(cs_admin, Action.Update, Resource.Location, lab, {"department": "Computer Science"})


def test_plain_user_cannot_edit_locations():
    assert not authorize(visitor, Action.Update, Resource.Location, lab)
    assert not authorize(visitor, Action.UploadMedia, Resource.Location, lab)


def test_department_admin_manages_users_in_own_department():
    own = UserTarget(role=UserRole.DepartmentAdmin, department="Computer Science")
    other = UserTarget(role=UserRole.DepartmentAdmin, department="Library")

    assert authorize(cs_admin, Action.Create, Resource.User, own, {"role": UserRole.DepartmentAdmin})
    assert authorize(cs_admin, Action.Update, Resource.User, own, {"name": "New name"})
    assert not authorize(cs_admin, Action.Update, Resource.User, other, {"name": "New name"})
    assert not authorize(cs_admin, Action.Update, Resource.User, own, {"department": "Library"})


def test_department_admin_cannot_touch_super_admins_or_flags():
    own = UserTarget(role=UserRole.DepartmentAdmin, department="Computer Science")

    assert not authorize(cs_admin, Action.Update, Resource.User, own, {"role": UserRole.SuperAdmin})
    assert not authorize(cs_admin, Action.Update, Resource.User, own, {"assigned_locations": [LIBRARY_ID]})
    assert not authorize(cs_admin, Action.Update, Resource.User, own, {"is_active": True})
    assert not authorize(
        cs_admin, Action.Update, Resource.User, UserTarget(role=UserRole.SuperAdmin, department="Computer Science")
    )


def test_only_super_admin_deletes_or_toggles_users():
    own = UserTarget(role=UserRole.DepartmentAdmin, department="Computer Science")
    for action in (Action.Delete, Action.Activate, Action.Deactivate):
        assert not authorize(cs_admin, action, Resource.User, own)
        assert authorize(super_admin, action, Resource.User, own)


def test_admin_reads_and_upload_signing():
    for resource in (Resource.User, Resource.Location, Resource.Department):
        assert authorize(cs_admin, Action.Read, resource)
        assert not authorize(visitor, Action.Read, resource)

    assert authorize(cs_admin, Action.SignUpload, Resource.Media)
    assert not authorize(visitor, Action.SignUpload, Resource.Media)


def test_department_admin_cannot_move_users_out_of_their_department():
    peer = UserTarget(role=UserRole.DepartmentAdmin, department="Computer Science")
    new_user = UserTarget(role=UserRole.User)

    # demoting drops the department
    assert not authorize(cs_admin, Action.Update, Resource.User, peer, {"role": UserRole.User})
    assert not authorize(cs_admin, Action.Create, Resource.User, new_user, {"role": UserRole.User})


def test_department_names_match_case_insensitively():
    peer = UserTarget(role=UserRole.DepartmentAdmin, department="computer science")

    assert authorize(cs_admin, Action.Update, Resource.User, peer, {"name": "Renamed"})
    assert authorize(cs_admin, Action.Update, Resource.User, peer, {"department": "COMPUTER SCIENCE"})
    assert authorize(cs_admin, Action.Update, Resource.Location, lab, {"department": "computer science"})


def test_department_writes_default_to_deny():
    assert not authorize(cs_admin, Action.Create, Resource.Department)
    assert not authorize(cs_admin, Action.Update, Resource.Department)


def test_enforce_raises_matching_errors():
    enforce(authorize(super_admin, Action.Create, Resource.Location))

    with pytest.raises(Unauthorized):
        enforce(authorize(None, Action.Read, Resource.User))
    with pytest.raises(Forbidden):
        enforce(authorize(visitor, Action.Create, Resource.Location))
