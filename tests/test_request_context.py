from types import SimpleNamespace

import pytest

from app import auth_utils

USER = {"user_id": "user_1", "instant_user_id": "inst_1", "email": "ana@example.com"}
MEMBERSHIPS = [
    {"account_id": "acct_a", "role": "owner"},
    {"account_id": "acct_b", "role": "member"},
]


def _request(**headers):
    return SimpleNamespace(headers={k.replace("_", "-"): v for k, v in headers.items()})


@pytest.fixture(autouse=True)
def _stub_lookups(monkeypatch):
    monkeypatch.setattr(auth_utils, "get_app_user_by_instant_id", lambda iid: USER if iid == "inst_1" else None)
    monkeypatch.setattr(auth_utils, "get_app_user_by_email", lambda email: USER if email == "ana@example.com" else None)
    monkeypatch.setattr(auth_utils, "get_active_memberships", lambda uid: list(MEMBERSHIPS))
    monkeypatch.setattr(auth_utils, "get_account", lambda acct: {"account_id": acct} if acct == "acct_demo_1" else None)
    monkeypatch.setattr(auth_utils, "get_first_account", lambda: {"account_id": "acct_first"})


def test_user_found_by_instant_id_uses_first_membership():
    ctx = auth_utils.resolve_request_context(_request(x_instant_user_id="inst_1"))
    assert ctx == {"account_id": "acct_a", "app_user_id": "user_1", "role": "owner"}


def test_email_lookup_is_case_insensitive():
    ctx = auth_utils.resolve_request_context(_request(x_user_email="  ANA@Example.com "))
    assert ctx["app_user_id"] == "user_1"


def test_requested_account_picks_matching_membership():
    ctx = auth_utils.resolve_request_context(_request(x_instant_user_id="inst_1", x_account_id="acct_b"))
    assert ctx == {"account_id": "acct_b", "app_user_id": "user_1", "role": "member"}


def test_anonymous_request_falls_back_to_demo_account():
    ctx = auth_utils.resolve_request_context(_request())
    assert ctx == {"account_id": "acct_demo_1", "app_user_id": None, "role": None}


def test_anonymous_request_without_demo_uses_first_account(monkeypatch):
    monkeypatch.setattr(auth_utils, "get_account", lambda acct: None)
    assert auth_utils.resolve_request_context(_request())["account_id"] == "acct_first"


def test_no_accounts_at_all(monkeypatch):
    monkeypatch.setattr(auth_utils, "get_account", lambda acct: None)
    monkeypatch.setattr(auth_utils, "get_first_account", lambda: None)
    with pytest.raises(auth_utils.NoAccountError):
        auth_utils.resolve_request_context(_request(x_user_email="nobody@example.com"))
