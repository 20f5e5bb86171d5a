import asyncio

import pytest
from fastapi import HTTPException

import supabase_auth
from supabase_auth import AuthUser, clear_auth_cache, extract_bearer_token, require_user


@pytest.fixture(autouse=True)
def _fresh_cache():
    clear_auth_cache()
    yield
    clear_auth_cache()


@pytest.fixture
def verify_calls(monkeypatch):
    calls = []

    async def _verify(token):
        calls.append(token)
        return AuthUser(id="u-1") if token == "good" else None

    monkeypatch.setattr(supabase_auth, "_verify_with_supabase", _verify)
    return calls


def test_extract_bearer_token():
    assert extract_bearer_token("Bearer abc") == "abc"
    assert extract_bearer_token("bearer abc") == "abc"
    assert extract_bearer_token("Basic abc") is None
    assert extract_bearer_token("Bearer") is None
    assert extract_bearer_token(None) is None


def test_valid_token_is_cached(verify_calls):
    first = asyncio.run(require_user("Bearer good"))
    second = asyncio.run(require_user("Bearer good"))
    assert first == second == AuthUser(id="u-1")
    assert verify_calls == ["good"]


def test_rejected_token_is_401_and_negatively_cached(verify_calls):
    for _ in range(2):
        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(require_user("Bearer bad"))
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Invalid token"
    assert verify_calls == ["bad"]


def test_missing_token_never_reaches_supabase(verify_calls):
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(require_user(None))
    assert exc_info.value.detail == "No token"
    assert verify_calls == []


def test_verification_error_is_401(monkeypatch):
    async def _verify(token):
        raise ConnectionError("supabase down")

    monkeypatch.setattr(supabase_auth, "_verify_with_supabase", _verify)
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(require_user("Bearer whatever"))
    assert exc_info.value.status_code == 401
