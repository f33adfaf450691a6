# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the GoTrue identity provider client."""

import json

import httpx
import pytest

from src.core.config import IdentityProviderSettings
from src.domains.auth.identity import GoTrueIdentityProvider, IdentityServiceError


def _provider(handler) -> GoTrueIdentityProvider:
    settings = IdentityProviderSettings(
        base_url="http://auth.test/",
        service_key="svc-key",  # type: ignore[arg-type]
    )
    return GoTrueIdentityProvider(settings, transport=httpx.MockTransport(handler))


async def _create(provider: GoTrueIdentityProvider) -> str:
    return await provider.create_identity(
        email="a@x.com",
        password_hash="$2b$04$hash",
        email_confirmed=True,
        metadata={"first_name": "Ann", "last_name": "Lee"},
    )


@pytest.mark.asyncio
class TestCreateIdentity:
    """Tests for create_identity."""

    async def test_sends_admin_request(self) -> None:
        """Test the request shape and that the id is returned."""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"id": "id-1", "email": "a@x.com"})

        provider = _provider(handler)
        try:
            identity_id = await _create(provider)
        finally:
            await provider.close()

        assert identity_id == "id-1"
        request = requests[0]
        assert request.method == "POST"
        assert str(request.url) == "http://auth.test/auth/v1/admin/users"
        assert request.headers["apikey"] == "svc-key"
        assert request.headers["authorization"] == "Bearer svc-key"
        assert json.loads(request.content) == {
            "email": "a@x.com",
            "password_hash": "$2b$04$hash",
            "email_confirm": True,
            "user_metadata": {"first_name": "Ann", "last_name": "Lee"},
        }

    async def test_wrapped_user_response(self) -> None:
        """Test responses that nest the user object."""
        provider = _provider(lambda request: httpx.Response(200, json={"user": {"id": "id-2"}}))
        try:
            assert await _create(provider) == "id-2"
        finally:
            await provider.close()

    async def test_rejection_carries_service_message(self) -> None:
        """Test that GoTrue error bodies surface in the exception."""
        provider = _provider(
            lambda request: httpx.Response(
                422, json={"code": 422, "msg": "A user with this email address has already been registered"}
            )
        )
        try:
            with pytest.raises(IdentityServiceError) as exc_info:
                await _create(provider)
        finally:
            await provider.close()

        assert exc_info.value.status_code == 422
        assert "already been registered" in exc_info.value.message

    async def test_unreachable_service(self) -> None:
        """Test that transport errors become IdentityServiceError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        provider = _provider(handler)
        try:
            with pytest.raises(IdentityServiceError) as exc_info:
                await _create(provider)
        finally:
            await provider.close()

        assert exc_info.value.status_code is None
        assert "unreachable" in exc_info.value.message

    async def test_response_without_id(self) -> None:
        """Test that a success without an id is an error."""
        provider = _provider(lambda request: httpx.Response(200, json={"email": "a@x.com"}))
        try:
            with pytest.raises(IdentityServiceError, match="did not include an id"):
                await _create(provider)
        finally:
            await provider.close()

    async def test_invalid_json(self) -> None:
        """Test that a non-JSON success body is an error."""
        provider = _provider(lambda request: httpx.Response(200, text="<html>"))
        try:
            with pytest.raises(IdentityServiceError, match="invalid JSON"):
                await _create(provider)
        finally:
            await provider.close()


@pytest.mark.asyncio
class TestDeleteIdentity:
    """Tests for delete_identity."""

    async def test_deletes_by_id(self) -> None:
        """Test the DELETE request."""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={})

        provider = _provider(handler)
        try:
            await provider.delete_identity("id-1")
        finally:
            await provider.close()

        assert requests[0].method == "DELETE"
        assert requests[0].url.path == "/auth/v1/admin/users/id-1"

    async def test_missing_identity_is_not_an_error(self) -> None:
        """Test that 404 counts as already deleted."""
        provider = _provider(lambda request: httpx.Response(404, json={"msg": "User not found"}))
        try:
            await provider.delete_identity("gone")
        finally:
            await provider.close()

    async def test_server_error(self) -> None:
        """Test that other failures raise."""
        provider = _provider(
            lambda request: httpx.Response(500, json={"error": "database unavailable"})
        )
        try:
            with pytest.raises(IdentityServiceError) as exc_info:
                await provider.delete_identity("id-1")
        finally:
            await provider.close()

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "database unavailable"
