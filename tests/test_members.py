"""
tests/test_members.py
Tests for provider members: listing with display metadata, team assignment,
role changes, suspension rules and removal.
"""

import pytest
from httpx import AsyncClient

from tests.conftest import TEAM_ID, FakeSupabase, api, auth_headers


def audit_actions(db: FakeSupabase) -> list:
    return [row["action"] for row in db.rows("audit_logs")]


# ── Listing ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_list_members_with_display_names(client: AsyncClient):
    response = await client.get(api("/members"), headers=auth_headers("viewer"))
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 6
    by_id = {m["id"]: m for m in data["data"]}
    assert "m-outsider" not in by_id
    assert by_id["m-owner"]["full_name"] == "Owner"
    assert by_id["m-owner"]["email"] == "owner@lutongbahay.ph"
    # no full_name in metadata: falls back to the e-mail local part
    assert by_id["m-floater"]["full_name"] == "floater"


@pytest.mark.asyncio
async def test_legacy_manager_role_is_normalized(client: AsyncClient, db: FakeSupabase):
    db.row("provider_members", "m-supervisor")["role"] = "manager"
    response = await client.get(api("/members"), headers=auth_headers("owner"))
    by_id = {m["id"]: m for m in response.json()["data"]}
    assert by_id["m-supervisor"]["role"] == "supervisor"


@pytest.mark.asyncio
async def test_unknown_user_fallback(client: AsyncClient, db: FakeSupabase):
    db.users.pop("u-viewer")
    response = await client.get(api("/members"), headers=auth_headers("owner"))
    by_id = {m["id"]: m for m in response.json()["data"]}
    assert by_id["m-viewer"]["full_name"] == "Unknown User"
    assert by_id["m-viewer"]["email"] == ""


# ── Team assignment ────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_assign_member_to_team(client: AsyncClient, db: FakeSupabase):
    response = await client.patch(
        api("/members/m-floater/team"), headers=auth_headers("supervisor"), json={"team_id": TEAM_ID}
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Member assigned to team successfully"
    assert db.row("provider_members", "m-floater")["team_id"] == TEAM_ID
    assert audit_actions(db) == ["member_team_updated"]


@pytest.mark.asyncio
async def test_remove_member_from_team(client: AsyncClient, db: FakeSupabase):
    response = await client.patch(api("/members/m-staff/team"), headers=auth_headers("owner"), json={"team_id": None})
    assert response.status_code == 200
    assert response.json()["message"] == "Member removed from team successfully"
    assert db.row("provider_members", "m-staff")["team_id"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize("member_id,team_id,message", [
    ("m-staff", TEAM_ID, "Member is already assigned to this team"),
    ("m-floater", None, "Member is already not assigned to any team"),
])
async def test_unchanged_team_is_a_no_op(client: AsyncClient, db: FakeSupabase, member_id, team_id, message):
    response = await client.patch(api(f"/members/{member_id}/team"), headers=auth_headers("owner"), json={"team_id": team_id})
    assert response.status_code == 200
    assert response.json()["message"] == message
    assert audit_actions(db) == []


@pytest.mark.asyncio
async def test_cannot_assign_to_archived_team(client: AsyncClient):
    response = await client.patch(
        api("/members/m-floater/team"), headers=auth_headers("owner"), json={"team_id": "team-archived"}
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot assign members to an inactive or archived team"


@pytest.mark.asyncio
async def test_cannot_assign_to_unknown_team(client: AsyncClient):
    response = await client.patch(api("/members/m-floater/team"), headers=auth_headers("owner"), json={"team_id": "nope"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_staff_cannot_assign_teams(client: AsyncClient):
    response = await client.patch(api("/members/m-floater/team"), headers=auth_headers("staff"), json={"team_id": TEAM_ID})
    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


@pytest.mark.asyncio
async def test_member_of_another_provider_is_not_found(client: AsyncClient):
    response = await client.patch(api("/members/m-outsider/team"), headers=auth_headers("owner"), json={"team_id": TEAM_ID})
    assert response.status_code == 404


# ── Roles ──────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_admin_promotes_staff(client: AsyncClient, db: FakeSupabase):
    response = await client.patch(api("/members/m-staff/role"), headers=auth_headers("admin"), json={"role": "supervisor"})
    assert response.status_code == 200
    assert response.json()["message"] == "Member role updated to supervisor successfully"
    assert db.row("provider_members", "m-staff")["role"] == "supervisor"
    assert db.rows("audit_logs")[0]["details"] == {
        "target_user_id": "u-staff", "previous_role": "staff", "new_role": "supervisor",
    }


@pytest.mark.asyncio
async def test_manager_alias_is_accepted(client: AsyncClient, db: FakeSupabase):
    response = await client.patch(api("/members/m-viewer/role"), headers=auth_headers("owner"), json={"role": "Manager"})
    assert response.status_code == 200
    assert db.row("provider_members", "m-viewer")["role"] == "supervisor"


@pytest.mark.asyncio
async def test_same_role_is_a_no_op(client: AsyncClient, db: FakeSupabase):
    response = await client.patch(api("/members/m-staff/role"), headers=auth_headers("owner"), json={"role": "staff"})
    assert response.status_code == 200
    assert response.json()["message"] == "Member already has the staff role"
    assert audit_actions(db) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("actor,member_id,role,status_code,message", [
    ("owner", "m-staff", "chef", 400, "Invalid role. Must be one of: owner, admin, supervisor, staff, viewer"),
    ("admin", "m-owner", "staff", 400, "Cannot change the role of an owner"),
    ("admin", "m-staff", "owner", 403, "Only owners can assign the owner role"),
    ("admin", "m-admin", "staff", 400, "You cannot change your own role"),
    ("supervisor", "m-staff", "viewer", 403, "You do not have permission to update member roles"),
])
async def test_role_change_rules(client: AsyncClient, actor, member_id, role, status_code, message):
    response = await client.patch(api(f"/members/{member_id}/role"), headers=auth_headers(actor), json={"role": role})
    assert response.status_code == status_code
    assert response.json()["detail"] == message


@pytest.mark.asyncio
async def test_owner_may_grant_owner(client: AsyncClient, db: FakeSupabase):
    response = await client.patch(api("/members/m-admin/role"), headers=auth_headers("owner"), json={"role": "owner"})
    assert response.status_code == 200
    assert db.row("provider_members", "m-admin")["role"] == "owner"


# ── Status ─────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_suspend_and_reactivate(client: AsyncClient, db: FakeSupabase):
    response = await client.patch(api("/members/m-staff/status"), headers=auth_headers("admin"), json={"status": "suspended"})
    assert response.status_code == 200
    assert response.json()["message"] == "Member suspended successfully"
    assert db.row("provider_members", "m-staff")["status"] == "suspended"

    response = await client.patch(api("/members/m-staff/status"), headers=auth_headers("admin"), json={"status": "active"})
    assert response.json()["message"] == "Member activated successfully"
    assert audit_actions(db) == ["member_status_updated", "member_status_updated"]


@pytest.mark.asyncio
async def test_suspended_member_loses_access(client: AsyncClient):
    await client.patch(api("/members/m-staff/status"), headers=auth_headers("owner"), json={"status": "suspended"})
    response = await client.get(api("/bookings"), headers=auth_headers("staff"))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_cannot_suspend_peer_admin(client: AsyncClient, db: FakeSupabase):
    db.rows("provider_members").append({
        "id": "m-admin2", "provider_id": "prov-1", "user_id": "u-admin2", "role": "admin", "status": "active",
    })
    response = await client.patch(api("/members/m-admin2/status"), headers=auth_headers("admin"), json={"status": "suspended"})
    assert response.status_code == 403
    assert response.json()["detail"] == "You cannot change the status of members with equal or higher roles"


@pytest.mark.asyncio
@pytest.mark.parametrize("actor,member_id,status_code,message", [
    ("owner", "m-owner", 400, "Owners cannot change their own status"),
    ("admin", "m-owner", 403, "Only owners can change the status of other owners"),
    ("supervisor", "m-staff", 403, "You do not have permission to update member status"),
])
async def test_suspension_rules(client: AsyncClient, actor, member_id, status_code, message):
    response = await client.patch(
        api(f"/members/{member_id}/status"), headers=auth_headers(actor), json={"status": "suspended"}
    )
    assert response.status_code == status_code
    assert response.json()["detail"] == message


@pytest.mark.asyncio
@pytest.mark.parametrize("member_id,message", [
    ("m-owner", "Only owners can change the status of other owners"),
    ("m-admin2", "You cannot change the status of members with equal or higher roles"),
])
async def test_admin_cannot_reactivate_higher_or_equal_roles(
    client: AsyncClient, db: FakeSupabase, member_id, message
):
    db.rows("provider_members").append({
        "id": "m-admin2", "provider_id": "prov-1", "user_id": "u-admin2", "role": "admin", "status": "active",
    })
    db.row("provider_members", member_id)["status"] = "suspended"
    response = await client.patch(api(f"/members/{member_id}/status"), headers=auth_headers("admin"), json={"status": "active"})
    assert response.status_code == 403
    assert response.json()["detail"] == message
    assert db.row("provider_members", member_id)["status"] == "suspended"


@pytest.mark.asyncio
async def test_owner_reactivates_suspended_admin(client: AsyncClient, db: FakeSupabase):
    db.row("provider_members", "m-admin")["status"] = "suspended"
    response = await client.patch(api("/members/m-admin/status"), headers=auth_headers("owner"), json={"status": "active"})
    assert response.status_code == 200
    assert response.json()["message"] == "Member activated successfully"


@pytest.mark.asyncio
async def test_invalid_status_value(client: AsyncClient):
    response = await client.patch(api("/members/m-staff/status"), headers=auth_headers("owner"), json={"status": "banned"})
    assert response.status_code == 422


# ── Removal ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_admin_removes_staff(client: AsyncClient, db: FakeSupabase):
    response = await client.delete(api("/members/m-staff"), headers=auth_headers("admin"))
    assert response.status_code == 200
    assert response.json() == {"removed_member_id": "m-staff", "message": "Member removed successfully"}
    row = db.row("provider_members", "m-staff")
    assert row["status"] == "suspended"
    assert row["team_id"] is None
    assert audit_actions(db) == ["member_removed"]
    assert db.rows("audit_logs")[0]["details"]["previous_team_id"] == TEAM_ID


@pytest.mark.asyncio
async def test_removed_member_loses_access(client: AsyncClient):
    await client.delete(api("/members/m-staff"), headers=auth_headers("owner"))
    response = await client.get(api("/bookings"), headers=auth_headers("staff"))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_owner_removes_second_owner(client: AsyncClient, db: FakeSupabase):
    db.row("provider_members", "m-admin")["role"] = "owner"
    response = await client.delete(api("/members/m-admin"), headers=auth_headers("owner"))
    assert response.status_code == 200
    assert db.row("provider_members", "m-admin")["status"] == "suspended"


@pytest.mark.asyncio
@pytest.mark.parametrize("actor,member_id,status_code,message", [
    ("owner", "m-owner", 400, "Owners cannot remove themselves"),
    ("admin", "m-owner", 403, "Only owners can remove other owners"),
    ("admin", "m-admin2", 403, "You cannot remove members with equal or higher roles"),
    ("supervisor", "m-staff", 403, "You do not have permission to remove members"),
    ("admin", "m-ghost", 404, "Member not found"),
])
async def test_removal_rules(client: AsyncClient, db: FakeSupabase, actor, member_id, status_code, message):
    db.rows("provider_members").append({
        "id": "m-admin2", "provider_id": "prov-1", "user_id": "u-admin2", "role": "admin", "status": "active",
    })
    response = await client.delete(api(f"/members/{member_id}"), headers=auth_headers(actor))
    assert response.status_code == status_code
    assert response.json()["detail"] == message
    assert audit_actions(db) == []

