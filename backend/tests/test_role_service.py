from datetime import date

import pytest

from rbac_registry.domain.records import UserDraft
from rbac_registry.errors import ConflictError, ValidationError
from rbac_registry.services import PermissionService, RoleService
from tests.fakes import FakeDatabase, FakePermissionRepository, FakeRoleRepository


async def _seed_permissions(services, *names: str) -> None:
    for name in names:
        await services.permissions.create(name)


def _permission_names(role) -> list[str]:
    return [permission.name for permission in role.permissions]


@pytest.mark.anyio
async def test_create_role_keeps_permission_order(services) -> None:
    await _seed_permissions(services, "CREATE", "READ", "DELETE")

    role = await services.roles.create("admin", ["DELETE", "CREATE"])

    assert role.name == "admin"
    assert _permission_names(role) == ["DELETE", "CREATE"]


@pytest.mark.anyio
async def test_create_role_without_permissions(services) -> None:
    role = await services.roles.create("guest")

    assert role.permissions == ()


@pytest.mark.anyio
async def test_create_role_collapses_repeated_permissions(services) -> None:
    await _seed_permissions(services, "CREATE", "READ")

    role = await services.roles.create("editor", ["READ", "CREATE", " READ "])

    assert _permission_names(role) == ["READ", "CREATE"]


@pytest.mark.anyio
async def test_create_role_reports_first_unknown_permission(fake_db, services) -> None:
    await _seed_permissions(services, "CREATE")

    with pytest.raises(ConflictError) as exc_info:
        await services.roles.create("admin", ["CREATE", "MISSING_A", "MISSING_B"])

    assert exc_info.value.message == "Permission MISSING_A does not exist"
    assert exc_info.value.details == {"permission": "MISSING_A"}
    assert fake_db.roles == {}


@pytest.mark.anyio
async def test_create_duplicate_role_conflicts(services) -> None:
    await services.roles.create("admin")

    with pytest.raises(ConflictError) as exc_info:
        await services.roles.create(" admin")

    assert exc_info.value.message == "Role admin already exists"


@pytest.mark.anyio
async def test_blank_role_name_is_rejected(services) -> None:
    with pytest.raises(ValidationError):
        await services.roles.create("")


@pytest.mark.anyio
async def test_list_roles_filters_by_name(services) -> None:
    await services.roles.create("Admin")
    await services.roles.create("viewer")
    await services.roles.create("SuperAdmin")

    roles = await services.roles.list("admin")

    assert sorted(role.name for role in roles) == ["Admin", "SuperAdmin"]
    assert len(await services.roles.list(None)) == 3


@pytest.mark.anyio
async def test_replace_role_swaps_name_and_permissions(services) -> None:
    await _seed_permissions(services, "CREATE", "READ")
    original = await services.roles.create("editor", ["CREATE"])

    replaced = await services.roles.replace("editor", "writer", ["READ"])

    assert replaced.id == original.id
    assert replaced.name == "writer"
    assert _permission_names(replaced) == ["READ"]
    assert await services.roles.lookup_exact("editor") is None


@pytest.mark.anyio
async def test_replace_keeping_name_is_allowed(services) -> None:
    await _seed_permissions(services, "READ")
    await services.roles.create("viewer")

    replaced = await services.roles.replace("viewer", "viewer", ["READ"])

    assert _permission_names(replaced) == ["READ"]


@pytest.mark.anyio
async def test_replace_unknown_role_creates_new_one(fake_db, services) -> None:
    await _seed_permissions(services, "READ")

    created = await services.roles.replace("ghost", "auditor", ["READ"])

    assert created.name == "auditor"
    assert _permission_names(created) == ["READ"]
    assert len(fake_db.roles) == 1


@pytest.mark.anyio
async def test_replace_onto_existing_name_conflicts(services) -> None:
    await services.roles.create("editor")
    await services.roles.create("viewer")

    with pytest.raises(ConflictError):
        await services.roles.replace("editor", "viewer")


@pytest.mark.anyio
async def test_replace_with_unknown_permission_keeps_role(services) -> None:
    await _seed_permissions(services, "READ")
    await services.roles.create("viewer", ["READ"])

    with pytest.raises(ConflictError):
        await services.roles.replace("viewer", "reader", ["MISSING"])

    role = await services.roles.lookup_exact("viewer")
    assert _permission_names(role) == ["READ"]


@pytest.mark.anyio
async def test_add_permission_appends_at_end(services) -> None:
    await _seed_permissions(services, "CREATE", "READ", "DELETE")
    await services.roles.create("admin", ["CREATE"])

    await services.roles.add_permission("admin", "DELETE")
    role = await services.roles.add_permission("admin", "READ")

    assert _permission_names(role) == ["CREATE", "DELETE", "READ"]


@pytest.mark.anyio
async def test_add_permission_already_present_conflicts(services) -> None:
    await _seed_permissions(services, "CREATE")
    await services.roles.create("admin", ["CREATE"])

    with pytest.raises(ConflictError) as exc_info:
        await services.roles.add_permission("admin", "CREATE")

    assert exc_info.value.message == "Permission CREATE already exists in role admin"


@pytest.mark.anyio
async def test_add_permission_requires_role_and_permission(services) -> None:
    await _seed_permissions(services, "CREATE")
    await services.roles.create("admin")

    with pytest.raises(ConflictError):
        await services.roles.add_permission("ghost", "CREATE")
    with pytest.raises(ConflictError):
        await services.roles.add_permission("admin", "MISSING")


@pytest.mark.anyio
async def test_remove_permission(services) -> None:
    await _seed_permissions(services, "CREATE", "READ")
    await services.roles.create("admin", ["CREATE", "READ"])

    role = await services.roles.remove_permission("admin", "CREATE")

    assert _permission_names(role) == ["READ"]


@pytest.mark.anyio
async def test_remove_permission_not_in_role_conflicts(services) -> None:
    await _seed_permissions(services, "CREATE", "READ")
    await services.roles.create("admin", ["CREATE"])

    with pytest.raises(ConflictError) as exc_info:
        await services.roles.remove_permission("admin", "READ")

    assert exc_info.value.message == "Permission READ does not exist in role admin"


@pytest.mark.anyio
async def test_delete_unused_role(fake_db, services) -> None:
    role = await services.roles.create("temp")

    deleted = await services.roles.delete("temp")

    assert deleted.id == role.id
    assert fake_db.roles == {}


@pytest.mark.anyio
async def test_delete_role_in_use_conflicts(fake_db, services) -> None:
    await services.roles.create("admin")
    await services.users.create(
        UserDraft(
            name="Ana",
            email="ana@example.com",
            birthdate=date(1990, 1, 1),
            role_name="admin",
        )
    )

    with pytest.raises(ConflictError) as exc_info:
        await services.roles.delete("admin")

    assert exc_info.value.message == "Role admin is assigned to 1 user(s)"
    assert exc_info.value.details == {"role": "admin", "users": 1}
    assert len(fake_db.roles) == 1


@pytest.mark.anyio
async def test_delete_role_assigned_to_soft_deleted_user_conflicts(services) -> None:
    await services.roles.create("admin")
    user = await services.users.create(
        UserDraft(
            name="Ana",
            email="ana@example.com",
            birthdate=date(1990, 1, 1),
            role_name="admin",
        )
    )
    await services.users.soft_delete(user.user_code)

    with pytest.raises(ConflictError):
        await services.roles.delete("admin")


@pytest.mark.anyio
async def test_delete_unknown_role_conflicts(services) -> None:
    with pytest.raises(ConflictError) as exc_info:
        await services.roles.delete("ghost")

    assert exc_info.value.message == "Role ghost does not exist"


@pytest.mark.anyio
async def test_delete_without_user_counter_fails_loudly() -> None:
    db = FakeDatabase()
    permissions = PermissionService(FakePermissionRepository(db))
    roles = RoleService(FakeRoleRepository(db), permissions)
    await roles.create("admin")

    with pytest.raises(RuntimeError):
        await roles.delete("admin")
