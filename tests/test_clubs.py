"""Integration tests for clubs, memberships and invitations."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from kickabout.core.exceptions import DataStoreError
from kickabout.db.repositories import ClubPlayerRepository
from kickabout.db.services import ClubService
from tests.helpers import Account, seed_player


def create_club(client: TestClient, admin: Account, name: str = "Hackney Wanderers") -> dict:
    response = client.post(
        "/api/clubs", json={"name": name, "description": "Sunday league"}, headers=admin.headers
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def invite(client: TestClient, club_id: str, inviter: Account, player: Account):
    return client.post(
        f"/api/clubs/{club_id}/invite",
        json={"player_id": player.player_id},
        headers=inviter.headers,
    )


class TestClubCreation:
    """Test suite for POST /api/clubs."""

    def test_admin_creates_club_and_becomes_manager(self, client: TestClient, admin, store):
        club = create_club(client, admin)

        assert club["name"] == "Hackney Wanderers"
        assert club["created_by"] == admin.user_id
        assert club["member_count"] == 1
        assert club["members"][0]["player_id"] == admin.player_id
        assert club["members"][0]["role"] == "manager"
        assert len(store.rows("club_players")) == 1

    def test_non_admin_cannot_create_club(self, client: TestClient, organizer):
        response = client.post("/api/clubs", json={"name": "Rovers"}, headers=organizer.headers)

        assert response.status_code == 403

    def test_duplicate_name_conflicts(self, client: TestClient, admin):
        create_club(client, admin, "Rovers")

        response = client.post("/api/clubs", json={"name": "Rovers"}, headers=admin.headers)

        assert response.status_code == 409

    def test_short_name_rejected(self, client: TestClient, admin):
        response = client.post("/api/clubs", json={"name": "R"}, headers=admin.headers)

        assert response.status_code == 422

    async def test_club_removed_when_manager_membership_fails(self, store):
        """The club row is compensated away if the manager cannot be added."""
        admin = await seed_player(store, "AdminAnna", role="admin")
        service = ClubService(store)

        with patch.object(
            ClubPlayerRepository, "create", AsyncMock(side_effect=DataStoreError("boom"))
        ):
            with pytest.raises(DataStoreError):
                await service.create_club(admin, "Rovers")

        assert store.rows("clubs") == []
        assert store.rows("club_players") == []


class TestClubReads:
    """Test suite for club listings."""

    def test_list_and_get_club(self, client: TestClient, admin):
        club = create_club(client, admin)

        listed = client.get("/api/clubs", headers=admin.headers).json()["data"]
        detail = client.get(f"/api/clubs/{club['id']}", headers=admin.headers).json()["data"]
        members = client.get(f"/api/clubs/{club['id']}/members", headers=admin.headers)

        assert [c["id"] for c in listed] == [club["id"]]
        assert listed[0]["member_count"] == 1
        assert detail["members"][0]["player"]["nickname"] == admin.nickname
        assert members.json()["data"][0]["role"] == "manager"

    def test_unknown_club_is_404(self, client: TestClient, admin):
        assert client.get("/api/clubs/missing", headers=admin.headers).status_code == 404
        assert client.get("/api/clubs/missing/members", headers=admin.headers).status_code == 404

    def test_my_clubs_lists_role(self, client: TestClient, admin):
        club = create_club(client, admin)

        mine = client.get("/api/clubs/mine", headers=admin.headers).json()["data"]

        assert [(c["id"], c["role"]) for c in mine] == [(club["id"], "manager")]


class TestInvitations:
    """Test suite for the invitation lifecycle."""

    def test_invitation_lifecycle(self, client: TestClient, admin, register_account, store):
        """Outsiders cannot invite, managers can, and an invitation is accepted once."""
        club = create_club(client, admin)
        outsider = register_account("Outsider")
        bob = register_account("BobB")

        forbidden = invite(client, club["id"], outsider, bob)
        assert forbidden.status_code == 403

        created = invite(client, club["id"], admin, bob)
        assert created.status_code == 201
        invitation = created.json()["data"]
        assert invitation["status"] == "pending"
        assert invitation["invited_by"] == admin.user_id

        pending = client.get("/api/clubs/invitations", headers=bob.headers).json()["data"]
        assert [(i["id"], i["club_name"]) for i in pending] == [
            (invitation["id"], "Hackney Wanderers")
        ]

        accepted = client.post(
            f"/api/clubs/invitations/{invitation['id']}/accept", headers=bob.headers
        )
        assert accepted.status_code == 200
        data = accepted.json()["data"]
        assert data["invitation"]["status"] == "accepted"
        assert data["membership"]["player_id"] == bob.player_id
        assert data["membership"]["role"] == "member"
        assert len(store.rows("club_players")) == 2

        again = client.post(
            f"/api/clubs/invitations/{invitation['id']}/accept", headers=bob.headers
        )
        assert again.status_code == 404
        assert len(store.rows("club_players")) == 2

    def test_plain_member_cannot_invite(self, client: TestClient, admin, register_account):
        club = create_club(client, admin)
        bob = register_account("BobB")
        cid = register_account("CidC")
        invitation = invite(client, club["id"], admin, bob).json()["data"]
        client.post(f"/api/clubs/invitations/{invitation['id']}/accept", headers=bob.headers)

        response = invite(client, club["id"], bob, cid)

        assert response.status_code == 403

    def test_captain_can_invite(self, client: TestClient, admin, register_account, store):
        club = create_club(client, admin)
        bob = register_account("BobB")
        cid = register_account("CidC")
        invitation = invite(client, club["id"], admin, bob).json()["data"]
        client.post(f"/api/clubs/invitations/{invitation['id']}/accept", headers=bob.headers)
        asyncio.run(
            store.update(
                "club_players",
                {"club_id": club["id"], "player_id": bob.player_id},
                {"role": "captain"},
            )
        )

        assert invite(client, club["id"], bob, cid).status_code == 201

    def test_duplicate_pending_invitation_conflicts(
        self, client: TestClient, admin, register_account
    ):
        club = create_club(client, admin)
        bob = register_account("BobB")
        invite(client, club["id"], admin, bob)

        response = invite(client, club["id"], admin, bob)

        assert response.status_code == 409

    def test_inviting_existing_member_conflicts(self, client: TestClient, admin):
        club = create_club(client, admin)

        response = invite(client, club["id"], admin, admin)

        assert response.status_code == 409

    def test_invite_unknown_player_is_404(self, client: TestClient, admin):
        club = create_club(client, admin)

        response = client.post(
            f"/api/clubs/{club['id']}/invite", json={"player_id": "ghost"}, headers=admin.headers
        )

        assert response.status_code == 404

    def test_reject_then_reinvite(self, client: TestClient, admin, register_account):
        club = create_club(client, admin)
        bob = register_account("BobB")
        invitation = invite(client, club["id"], admin, bob).json()["data"]

        rejected = client.post(
            f"/api/clubs/invitations/{invitation['id']}/reject", headers=bob.headers
        )
        assert rejected.json()["data"]["status"] == "rejected"

        assert invite(client, club["id"], admin, bob).status_code == 201

    def test_only_invitee_can_accept(self, client: TestClient, admin, register_account):
        club = create_club(client, admin)
        bob = register_account("BobB")
        cid = register_account("CidC")
        invitation = invite(client, club["id"], admin, bob).json()["data"]

        response = client.post(
            f"/api/clubs/invitations/{invitation['id']}/accept", headers=cid.headers
        )

        assert response.status_code == 404

    def test_join_club_accepts_pending_invitation(
        self, client: TestClient, admin, register_account
    ):
        club = create_club(client, admin)
        bob = register_account("BobB")
        cid = register_account("CidC")
        invite(client, club["id"], admin, bob)

        joined = client.post(f"/api/clubs/{club['id']}/join", headers=bob.headers)
        uninvited = client.post(f"/api/clubs/{club['id']}/join", headers=cid.headers)

        assert joined.status_code == 200
        assert joined.json()["data"]["invitation"]["status"] == "accepted"
        assert uninvited.status_code == 404

    async def test_accept_restores_invitation_when_membership_fails(self, store):
        """A failed membership insert puts the invitation back to pending."""
        bob = await seed_player(store, "BobB")
        club = await store.insert("clubs", {"name": "Rovers", "created_by": "u-admin"})
        invitation = await store.insert(
            "club_invitations",
            {"club_id": club["id"], "player_id": bob.player_id, "invited_by": "u-admin"},
        )

        with patch.object(
            ClubPlayerRepository, "create", AsyncMock(side_effect=DataStoreError("boom"))
        ):
            with pytest.raises(DataStoreError):
                await ClubService(store).accept_invitation(invitation["id"], bob)

        stored = store.rows("club_invitations")[0]
        assert stored["status"] == "pending"
        assert store.rows("club_players") == []

