"""
Unit tests for API and page routes.

Authentication is faked by patching token verification and user lookup, so
these tests never touch the database.
"""

import io

import pytest
from fastapi.testclient import TestClient
from openpyxl import load_workbook
from leaguehub.api.main import app
from leaguehub.database.models import UserRole, UserStatus
from leaguehub.services import (
    auth_service,
    invitation_service,
    league_service,
    match_service,
    notification_service,
    upload_service,
    user_service,
)
from leaguehub.services.exceptions import (
    ConfirmationRequiredError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from leaguehub.utils.constants import XLSX_MEDIA_TYPE


def make_client_with_auth(
    monkeypatch,
    role=UserRole.PLAYER.value,
    status=UserStatus.APPROVED.value,
    user_id=1,
):
    """Create a test client with mocked authentication."""

    def fake_verify_token(token):
        return {"user_id": user_id, "email": "test@example.com"}

    async def fake_get_user_by_id(session, uid):
        return {
            "id": user_id,
            "email": "test@example.com",
            "name": "Test User",
            "role": role,
            "status": status,
            "gender": None,
            "level": None,
            "image": None,
        }

    monkeypatch.setattr(auth_service, "verify_token", fake_verify_token, raising=True)
    monkeypatch.setattr(user_service, "get_user_by_id", fake_get_user_by_id, raising=True)

    return TestClient(app), {"Authorization": "Bearer dummy"}


# ──────────────────────────────────────────────────────────────
# Authentication and role gates
# ──────────────────────────────────────────────────────────────


def test_protected_route_requires_token():
    client = TestClient(app)
    response = client.get("/api/notifications/count")
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_invalid_token_is_rejected(monkeypatch):
    monkeypatch.setattr(auth_service, "verify_token", lambda token: None, raising=True)
    client = TestClient(app)
    response = client.get("/api/users", headers={"Authorization": "Bearer junk"})
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid authentication token"


@pytest.mark.parametrize(
    "role",
    [UserRole.PLAYER.value, UserRole.CAPTAIN.value, UserRole.MANAGER.value],
)
def test_only_superadmin_changes_roles(monkeypatch, role):
    client, headers = make_client_with_auth(monkeypatch, role=role)

    async def fail_update_user_role(session, user_id, new_role):
        raise AssertionError("service must not be reached")

    monkeypatch.setattr(user_service, "update_user_role", fail_update_user_role, raising=True)

    response = client.patch("/api/users/2/role", json={"role": "MANAGER"}, headers=headers)
    assert response.status_code == 403
    assert response.json() == {"error": "Forbidden"}


def test_superadmin_changes_role(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role=UserRole.SUPERADMIN.value)
    calls = []

    async def fake_update_user_role(session, user_id, new_role):
        calls.append((user_id, new_role))
        return {"id": user_id, "role": new_role}

    monkeypatch.setattr(user_service, "update_user_role", fake_update_user_role, raising=True)

    response = client.patch("/api/users/2/role", json={"role": "MANAGER"}, headers=headers)
    assert response.status_code == 200
    assert response.json() == {"id": 2, "role": "MANAGER"}
    assert calls == [(2, "MANAGER")]


def test_service_validation_error_maps_to_400(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role=UserRole.SUPERADMIN.value)

    async def fake_update_user_role(session, user_id, new_role):
        raise ValueError("Invalid role")

    monkeypatch.setattr(user_service, "update_user_role", fake_update_user_role, raising=True)

    response = client.patch("/api/users/2/role", json={"role": "OWNER"}, headers=headers)
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid role"}


def test_captain_may_set_level(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role=UserRole.CAPTAIN.value)

    async def fake_update_user_level(session, user_id, level):
        return {"id": user_id, "level": level}

    monkeypatch.setattr(user_service, "update_user_level", fake_update_user_level, raising=True)

    response = client.patch("/api/users/3/level", json={"level": "B"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["level"] == "B"


def test_request_validation_error_is_400(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch)
    response = client.get("/api/users/not-a-number", headers=headers)
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid request"
    assert body["details"]


def test_register_rejects_bad_email():
    client = TestClient(app)
    response = client.post(
        "/api/auth/register",
        json={"email": "nope", "password": "longenough", "name": "Someone"},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid email address"}


def test_session_returns_null_without_token():
    client = TestClient(app)
    response = client.get("/api/auth/session")
    assert response.status_code == 200
    assert response.json() is None


def test_logout_clears_cookie():
    client = TestClient(app)
    response = client.post("/api/auth/logout")
    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert "access_token" in response.headers.get("set-cookie", "")


# ──────────────────────────────────────────────────────────────
# Notifications
# ──────────────────────────────────────────────────────────────


def test_notification_count_uses_camel_case(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role=UserRole.CAPTAIN.value)

    async def fake_counts(session, user_id, role):
        assert role == UserRole.CAPTAIN.value
        return {"count": 6, "notifications": 3, "invitations": 2, "matchRequests": 1}

    monkeypatch.setattr(notification_service, "get_notification_counts", fake_counts, raising=True)

    response = client.get("/api/notifications/count", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"count": 6, "notifications": 3, "invitations": 2, "matchRequests": 1}


def test_mark_all_read(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, user_id=7)

    async def fake_mark_all(session, user_id):
        assert user_id == 7
        return 4

    monkeypatch.setattr(notification_service, "mark_all_as_read", fake_mark_all, raising=True)

    response = client.patch("/api/notifications/read-all", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"success": True, "count": 4}


# ──────────────────────────────────────────────────────────────
# Superadmin bootstrap
# ──────────────────────────────────────────────────────────────


def test_create_superadmin_requires_session_when_bootstrap_disabled(monkeypatch):
    monkeypatch.delenv("ALLOW_SUPERADMIN_BOOTSTRAP", raising=False)
    client = TestClient(app)
    response = client.post(
        "/api/admin/create-superadmin",
        json={"email": "boss@example.com", "password": "longenough"},
    )
    assert response.status_code == 401


def test_create_superadmin_forbidden_for_manager(monkeypatch):
    monkeypatch.delenv("ALLOW_SUPERADMIN_BOOTSTRAP", raising=False)
    client, headers = make_client_with_auth(monkeypatch, role=UserRole.MANAGER.value)
    response = client.post(
        "/api/admin/create-superadmin",
        json={"email": "boss@example.com", "password": "longenough"},
        headers=headers,
    )
    assert response.status_code == 403


def test_create_superadmin_with_bootstrap(monkeypatch):
    monkeypatch.setenv("ALLOW_SUPERADMIN_BOOTSTRAP", "true")

    async def fake_create_or_promote(session, email, password_hash, name=None):
        assert auth_service.verify_password("longenough", password_hash)
        return {
            "created": True,
            "user": {
                "id": 1,
                "email": email,
                "name": name or "boss",
                "role": UserRole.SUPERADMIN.value,
                "status": UserStatus.APPROVED.value,
            },
        }

    monkeypatch.setattr(
        user_service, "create_or_promote_superadmin", fake_create_or_promote, raising=True
    )

    client = TestClient(app)
    response = client.post(
        "/api/admin/create-superadmin",
        json={"email": "Boss@Example.com", "password": "longenough"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Superadmin created"
    assert data["user"]["email"] == "boss@example.com"
    assert data["user"]["role"] == UserRole.SUPERADMIN.value


# ──────────────────────────────────────────────────────────────
# Template downloads
# ──────────────────────────────────────────────────────────────


def test_captain_downloads_team_template(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role=UserRole.CAPTAIN.value)
    response = client.get("/api/captain/download-template", headers=headers)
    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX_MEDIA_TYPE
    assert 'filename="team-template.xlsx"' in response.headers["content-disposition"]
    ws = load_workbook(io.BytesIO(response.content)).active
    assert ws.cell(row=1, column=1).value == "Team Name"


def test_player_cannot_download_manager_template(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role=UserRole.PLAYER.value)
    response = client.get("/api/manager/download-template", headers=headers)
    assert response.status_code == 403


def test_league_template_for_unmanaged_league(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role=UserRole.MANAGER.value)

    async def fake_get_managed_league(session, league_id, user_id, role):
        raise PermissionDeniedError("You do not manage this league")

    monkeypatch.setattr(league_service, "get_managed_league", fake_get_managed_league, raising=True)

    response = client.get("/api/manager/leagues/5/download-template", headers=headers)
    assert response.status_code == 403
    assert response.json() == {"error": "You do not manage this league"}


def test_doubles_league_template(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role=UserRole.MANAGER.value)

    async def fake_get_managed_league(session, league_id, user_id, role):
        return {"id": league_id, "format": "DOUBLES", "category": "MALE"}

    monkeypatch.setattr(league_service, "get_managed_league", fake_get_managed_league, raising=True)

    response = client.get("/api/manager/leagues/5/download-template", headers=headers)
    assert response.status_code == 200
    assert 'filename="team-template.xlsx"' in response.headers["content-disposition"]


# ──────────────────────────────────────────────────────────────
# Pages
# ──────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "role,status,path,location",
    [
        (None, None, "/admin", "/auth/signin"),
        (None, None, "/player", "/auth/signin"),
        (UserRole.PLAYER.value, UserStatus.PENDING.value, "/player", "/pending"),
        (UserRole.MANAGER.value, "REJECTED", "/manager", "/pending"),
        (UserRole.PLAYER.value, UserStatus.APPROVED.value, "/admin", "/unauthorized"),
        (UserRole.CAPTAIN.value, UserStatus.APPROVED.value, "/manager", "/unauthorized"),
        (UserRole.PLAYER.value, UserStatus.APPROVED.value, "/captain", "/unauthorized"),
    ],
)
def test_page_gate_redirects(monkeypatch, role, status, path, location):
    if role is None:
        client, headers = TestClient(app), {}
    else:
        client, headers = make_client_with_auth(monkeypatch, role=role, status=status)
    response = client.get(path, headers=headers, follow_redirects=False)
    assert response.status_code == 307
    assert response.headers["location"] == location


@pytest.mark.parametrize(
    "role,path",
    [
        (UserRole.SUPERADMIN.value, "/admin"),
        (UserRole.SUPERADMIN.value, "/manager"),
        (UserRole.MANAGER.value, "/captain"),
        (UserRole.CAPTAIN.value, "/captain"),
        (UserRole.PLAYER.value, "/player"),
    ],
)
def test_page_gate_allows(monkeypatch, role, path):
    client, headers = make_client_with_auth(monkeypatch, role=role)
    response = client.get(path, headers=headers, follow_redirects=False)
    assert response.status_code == 200
    assert "Test User" in response.text


def test_pending_page_for_pending_user(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, status=UserStatus.PENDING.value)
    response = client.get("/pending", headers=headers, follow_redirects=False)
    assert response.status_code == 200


def test_signin_page_is_public():
    client = TestClient(app)
    response = client.get("/auth/signin", follow_redirects=False)
    assert response.status_code == 200


@pytest.mark.parametrize(
    "role,location",
    [
        (UserRole.SUPERADMIN.value, "/admin"),
        (UserRole.MANAGER.value, "/manager"),
        (UserRole.CAPTAIN.value, "/captain"),
        (UserRole.PLAYER.value, "/player"),
    ],
)
def test_root_redirects_to_dashboard(monkeypatch, role, location):
    client, headers = make_client_with_auth(monkeypatch, role=role)
    response = client.get("/", headers=headers, follow_redirects=False)
    assert response.status_code == 307
    assert response.headers["location"] == location


def test_page_gate_reads_session_cookie(monkeypatch):
    client, _ = make_client_with_auth(monkeypatch, role=UserRole.CAPTAIN.value)
    client.cookies.set("access_token", "dummy")
    response = client.get("/captain", follow_redirects=False)
    assert response.status_code == 200


@pytest.mark.parametrize(
    "path",
    [
        "/api/admin/download-template",
        "/api/captain/download-template",
        "/api/manager/download-template",
    ],
)
def test_superadmin_passes_every_role_gate(monkeypatch, path):
    client, headers = make_client_with_auth(monkeypatch, role=UserRole.SUPERADMIN.value)
    response = client.get(path, headers=headers)
    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX_MEDIA_TYPE


# ──────────────────────────────────────────────────────────────
# Invitations
# ──────────────────────────────────────────────────────────────


def test_accept_invitation(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, user_id=7)
    calls = []

    async def fake_resolve_invitation(session, invitation_id, user_id, role, accept):
        calls.append((invitation_id, user_id, role, accept))
        return {"success": True, "status": "ACCEPTED"}

    monkeypatch.setattr(invitation_service, "resolve_invitation", fake_resolve_invitation, raising=True)

    response = client.patch("/api/invitations/4", json={"accept": True}, headers=headers)
    assert response.status_code == 200
    assert response.json() == {"success": True, "status": "ACCEPTED"}
    assert calls == [(4, 7, UserRole.PLAYER.value, True)]


@pytest.mark.parametrize(
    "error,status_code",
    [
        (ConflictError("Invitation already resolved"), 400),
        (PermissionDeniedError("This invitation is not yours"), 403),
        (NotFoundError("Invitation not found"), 404),
    ],
)
def test_resolve_invitation_errors(monkeypatch, error, status_code):
    client, headers = make_client_with_auth(monkeypatch)

    async def fake_resolve_invitation(session, invitation_id, user_id, role, accept):
        raise error

    monkeypatch.setattr(invitation_service, "resolve_invitation", fake_resolve_invitation, raising=True)

    response = client.patch("/api/invitations/4", json={"accept": False}, headers=headers)
    assert response.status_code == status_code
    assert response.json() == {"error": str(error)}


def test_resolve_invitation_needs_accept_flag(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch)
    response = client.patch("/api/invitations/4", json={}, headers=headers)
    assert response.status_code == 400


# ──────────────────────────────────────────────────────────────
# Leagues, matches and uploads
# ──────────────────────────────────────────────────────────────


def test_manager_enrolls_league_player(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role=UserRole.MANAGER.value, user_id=3)
    calls = []

    async def fake_add_league_player(session, league_id, user_id, role, player_id):
        calls.append((league_id, user_id, player_id))
        return {"id": 1, "league_id": league_id, "player_id": player_id}

    monkeypatch.setattr(league_service, "add_league_player", fake_add_league_player, raising=True)

    response = client.post("/api/leagues/5/players", json={"playerId": 9}, headers=headers)
    assert response.status_code == 200
    assert response.json()["player_id"] == 9
    assert calls == [(5, 3, 9)]


def test_player_leagues_route_is_not_a_league_id(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, user_id=8)

    async def fake_list_player_leagues(session, user_id):
        return [{"id": 2, "name": "Singles", "players_count": user_id}]

    monkeypatch.setattr(league_service, "list_player_leagues", fake_list_player_leagues, raising=True)

    response = client.get("/api/leagues/player", headers=headers)
    assert response.status_code == 200
    assert response.json() == [{"id": 2, "name": "Singles", "players_count": 8}]


def test_delete_league_asks_for_confirmation(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role=UserRole.MANAGER.value)

    async def fake_delete_league(session, league_id, user_id, role, confirmation=None):
        if confirmation != "DELETE":
            raise ConfirmationRequiredError("League has 4 matches", matches_count=4)
        return {"success": True, "deletedMatches": 4}

    monkeypatch.setattr(league_service, "delete_league", fake_delete_league, raising=True)

    response = client.delete("/api/leagues/5", headers=headers)
    assert response.status_code == 400
    assert response.json() == {
        "error": "League has 4 matches",
        "requiresConfirmation": True,
        "matchesCount": 4,
    }

    response = client.request(
        "DELETE", "/api/leagues/5", json={"confirmation": "DELETE"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json() == {"success": True, "deletedMatches": 4}


def test_report_score_needs_two_sets(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch)
    response = client.post(
        "/api/matches/3/report-score",
        json={"sets": [{"reporter": 6, "opponent": 4}]},
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json() == {"error": "At least 2 set scores are required"}


def test_report_score_passes_sets_to_service(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, user_id=5)
    calls = []

    async def fake_report_score(session, match_id, user_id, sets):
        calls.append((match_id, user_id, sets))
        return {"success": True, "score_status": "REPORTED_BY_HOME"}

    monkeypatch.setattr(match_service, "report_score", fake_report_score, raising=True)

    response = client.post(
        "/api/matches/3/report-score",
        json={
            "sets": [
                {"reporter": 6, "opponent": 4},
                {
                    "reporter": 7,
                    "opponent": 6,
                    "tiebreak": True,
                    "tiebreakScore": {"reporter": 7, "opponent": 3},
                },
            ]
        },
        headers=headers,
    )
    assert response.status_code == 200
    match_id, user_id, sets = calls[0]
    assert (match_id, user_id) == (3, 5)
    assert sets[1]["tiebreak_score"] == {"reporter": 7, "opponent": 3}
    assert sets[1]["tiebreak"] is True


def test_player_cannot_approve_match(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch)
    response = client.post("/api/matches/3/approve", headers=headers)
    assert response.status_code == 403


def test_superadmin_uploads_players(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role=UserRole.SUPERADMIN.value)
    seen = []

    async def fake_import_players(session, rows):
        seen.extend(rows)
        return {"created": len(rows), "errors": [], "accounts": []}

    monkeypatch.setattr(upload_service, "import_players", fake_import_players, raising=True)

    response = client.post(
        "/api/admin/upload-players",
        files={"file": ("players.csv", b"Name,Email\nAnn,ann@example.com\n", "text/csv")},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json() == {"created": 1, "errors": [], "accounts": []}
    assert seen == [{"name": "Ann", "email": "ann@example.com", "_row": 2}]


def test_manager_cannot_upload_players(monkeypatch):
    client, headers = make_client_with_auth(monkeypatch, role=UserRole.MANAGER.value)
    response = client.post(
        "/api/admin/upload-players",
        files={"file": ("players.csv", b"Name,Email\n", "text/csv")},
        headers=headers,
    )
    assert response.status_code == 403
