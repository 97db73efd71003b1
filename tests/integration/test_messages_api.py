"""Integration tests for the /messages resource."""

from collections.abc import Callable
from typing import Any

import pytest
import pytest_check
from httpx import AsyncClient
from pytest_mock import MockerFixture

from src.infrastructure.database.repositories import MessageRepository

from .conftest import UserFactory

HeadersFactory = Callable[..., dict[str, str]]


async def _store(
    client: AsyncClient,
    headers: dict[str, str],
    user_id: int,
    subject: str = "Subject",
    message: str = "Body",
) -> dict[str, Any]:
    response = await client.post(
        "/messages",
        json={"userId": user_id, "subject": subject, "message": message},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.mark.integration
class TestAuthentication:
    """Every route requires a valid bearer token for an existing user."""

    @pytest.mark.parametrize(
        ("method", "path"),
        [
            ("GET", "/messages"),
            ("GET", "/messages/abc"),
            ("POST", "/messages"),
            ("PATCH", "/messages/abc"),
            ("DELETE", "/messages/abc"),
        ],
    )
    async def test_missing_token(
        self, client: AsyncClient, method: str, path: str
    ) -> None:
        response = await client.request(method, path)

        assert response.status_code == 401
        assert response.json()["error_code"] == "UNAUTHORIZED"

    async def test_garbage_token(self, client: AsyncClient) -> None:
        response = await client.get(
            "/messages", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401

    async def test_token_for_unknown_user(
        self, client: AsyncClient, auth_headers: HeadersFactory
    ) -> None:
        response = await client.get("/messages", headers=auth_headers(12345))

        assert response.status_code == 401


@pytest.mark.integration
class TestStoreAndShow:
    """Creating and reading messages."""

    async def test_store_then_show(
        self, client: AsyncClient, create_user: UserFactory, auth_headers: HeadersFactory
    ) -> None:
        owner = await create_user()
        headers = auth_headers(owner.id)

        created = await _store(client, headers, owner.id, "Hello", "World")
        response = await client.get(f"/messages/{created['id']}", headers=headers)

        assert response.status_code == 200
        data = response.json()["data"]
        with pytest_check.check:
            assert data["subject"] == "Hello"
        with pytest_check.check:
            assert data["message"] == "World"
        with pytest_check.check:
            assert data["userId"] == owner.id
        with pytest_check.check:
            assert set(data) == {
                "id",
                "userId",
                "subject",
                "message",
                "createdAt",
                "updatedAt",
            }

    async def test_store_for_another_user_is_allowed(
        self, client: AsyncClient, create_user: UserFactory, auth_headers: HeadersFactory
    ) -> None:
        caller = await create_user()
        other = await create_user()

        created = await _store(client, auth_headers(caller.id), other.id)

        assert created["userId"] == other.id

    async def test_store_missing_subject(
        self, client: AsyncClient, create_user: UserFactory, auth_headers: HeadersFactory
    ) -> None:
        owner = await create_user()

        response = await client.post(
            "/messages",
            json={"userId": owner.id, "message": "Body"},
            headers=auth_headers(owner.id),
        )

        assert response.status_code == 422
        errors = response.json()["details"]["validation_errors"]
        assert "subject" in errors
        assert "message" not in errors

    async def test_store_unknown_user(
        self, client: AsyncClient, create_user: UserFactory, auth_headers: HeadersFactory
    ) -> None:
        owner = await create_user()

        response = await client.post(
            "/messages",
            json={"userId": 999, "subject": "S", "message": "M"},
            headers=auth_headers(owner.id),
        )

        assert response.status_code == 422
        assert response.json()["details"]["validation_errors"] == {
            "userId": ["The selected user id is invalid."]
        }

    async def test_store_out_of_range_user_id(
        self, client: AsyncClient, create_user: UserFactory, auth_headers: HeadersFactory
    ) -> None:
        owner = await create_user()

        response = await client.post(
            "/messages",
            json={"userId": 2**70, "subject": "S", "message": "M"},
            headers=auth_headers(owner.id),
        )

        assert response.status_code == 422
        assert list(response.json()["details"]["validation_errors"]) == ["userId"]

    @pytest.mark.parametrize("field", ["subject", "message"])
    async def test_store_blank_text_is_missing(
        self,
        client: AsyncClient,
        create_user: UserFactory,
        auth_headers: HeadersFactory,
        field: str,
    ) -> None:
        owner = await create_user()
        body = {"userId": owner.id, "subject": "S", "message": "M", field: "   "}

        response = await client.post(
            "/messages", json=body, headers=auth_headers(owner.id)
        )

        assert response.status_code == 422
        assert list(response.json()["details"]["validation_errors"]) == [field]

    async def test_store_text_is_trimmed(
        self, client: AsyncClient, create_user: UserFactory, auth_headers: HeadersFactory
    ) -> None:
        owner = await create_user()

        created = await _store(
            client, auth_headers(owner.id), owner.id, subject="  Padded  "
        )

        assert created["subject"] == "Padded"

    async def test_store_reports_all_field_errors(
        self, client: AsyncClient, create_user: UserFactory, auth_headers: HeadersFactory
    ) -> None:
        owner = await create_user()

        response = await client.post(
            "/messages",
            json={"userId": 999, "message": "M"},
            headers=auth_headers(owner.id),
        )

        assert response.status_code == 422
        errors = response.json()["details"]["validation_errors"]
        with pytest_check.check:
            assert "subject" in errors
        with pytest_check.check:
            assert errors["userId"] == ["The selected user id is invalid."]

    async def test_store_save_failure(
        self,
        client: AsyncClient,
        create_user: UserFactory,
        auth_headers: HeadersFactory,
        mocker: MockerFixture,
    ) -> None:
        owner = await create_user()
        mocker.patch.object(MessageRepository, "save", return_value=None)

        response = await client.post(
            "/messages",
            json={"userId": owner.id, "subject": "S", "message": "M"},
            headers=auth_headers(owner.id),
        )

        assert response.status_code == 500
        assert response.json()["message"] == "Error occurred on creating Message"
        assert response.json()["error_code"] == "INTERNAL_ERROR"
        assert response.json().get("debug_info") is None

    async def test_show_unknown_id(
        self, client: AsyncClient, create_user: UserFactory, auth_headers: HeadersFactory
    ) -> None:
        user = await create_user()

        response = await client.get("/messages/does-not-exist", headers=auth_headers(user.id))

        assert response.status_code == 404
        assert response.json()["message"] == (
            "The message with id does-not-exist doesn't exist"
        )


@pytest.mark.integration
class TestOwnership:
    """Show, update and destroy are limited to the owner and admins."""

    @pytest.mark.parametrize(
        ("method", "body"),
        [("GET", None), ("PUT", {"subject": "x"}), ("PATCH", {}), ("DELETE", None)],
    )
    async def test_non_owner_forbidden(
        self,
        client: AsyncClient,
        create_user: UserFactory,
        auth_headers: HeadersFactory,
        method: str,
        body: dict[str, str] | None,
    ) -> None:
        owner = await create_user()
        stranger = await create_user()
        created = await _store(client, auth_headers(owner.id), owner.id)

        response = await client.request(
            method,
            f"/messages/{created['id']}",
            json=body,
            headers=auth_headers(stranger.id),
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "FORBIDDEN"

    @pytest.mark.parametrize("method", ["GET", "PATCH", "DELETE"])
    async def test_unknown_id_is_404_not_403(
        self,
        client: AsyncClient,
        create_user: UserFactory,
        auth_headers: HeadersFactory,
        method: str,
    ) -> None:
        stranger = await create_user()

        response = await client.request(
            method, "/messages/unknown", headers=auth_headers(stranger.id)
        )

        assert response.status_code == 404

    async def test_admin_can_read_update_and_delete(
        self, client: AsyncClient, create_user: UserFactory, auth_headers: HeadersFactory
    ) -> None:
        owner = await create_user()
        admin = await create_user()
        created = await _store(client, auth_headers(owner.id), owner.id)
        url = f"/messages/{created['id']}"
        admin_headers = auth_headers(admin.id, admin=True)

        show = await client.get(url, headers=admin_headers)
        update = await client.patch(url, json={"subject": "By admin"}, headers=admin_headers)
        destroy = await client.delete(url, headers=admin_headers)

        assert show.status_code == 200
        assert update.status_code == 200
        assert update.json()["data"]["subject"] == "By admin"
        assert update.json()["data"]["userId"] == owner.id
        assert destroy.status_code == 204


@pytest.mark.integration
class TestUpdate:
    """Partial updates of subject and message."""

    async def test_partial_update(
        self, client: AsyncClient, create_user: UserFactory, auth_headers: HeadersFactory
    ) -> None:
        owner = await create_user()
        headers = auth_headers(owner.id)
        created = await _store(client, headers, owner.id, "Old", "Body")

        response = await client.put(
            f"/messages/{created['id']}", json={"subject": "New"}, headers=headers
        )

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["subject"] == "New"
        assert data["message"] == "Body"
        assert data["id"] == created["id"]

    async def test_empty_update_keeps_content(
        self, client: AsyncClient, create_user: UserFactory, auth_headers: HeadersFactory
    ) -> None:
        owner = await create_user()
        headers = auth_headers(owner.id)
        created = await _store(client, headers, owner.id, "Keep", "Me")

        response = await client.patch(f"/messages/{created['id']}", json={}, headers=headers)

        data = response.json()["data"]
        assert response.status_code == 200
        assert (data["subject"], data["message"]) == ("Keep", "Me")
        assert data["updatedAt"] >= created["updatedAt"]
        assert data["createdAt"] == created["createdAt"]

    async def test_owner_change_is_ignored(
        self, client: AsyncClient, create_user: UserFactory, auth_headers: HeadersFactory
    ) -> None:
        owner = await create_user()
        other = await create_user()
        headers = auth_headers(owner.id)
        created = await _store(client, headers, owner.id)

        response = await client.patch(
            f"/messages/{created['id']}", json={"userId": other.id}, headers=headers
        )

        assert response.json()["data"]["userId"] == owner.id

    async def test_empty_subject_rejected(
        self, client: AsyncClient, create_user: UserFactory, auth_headers: HeadersFactory
    ) -> None:
        owner = await create_user()
        headers = auth_headers(owner.id)
        created = await _store(client, headers, owner.id)

        response = await client.patch(
            f"/messages/{created['id']}", json={"subject": ""}, headers=headers
        )

        assert response.status_code == 422
        assert "subject" in response.json()["details"]["validation_errors"]


@pytest.mark.integration
class TestDestroy:
    """Hard deletion."""

    async def test_destroy_then_show(
        self, client: AsyncClient, create_user: UserFactory, auth_headers: HeadersFactory
    ) -> None:
        owner = await create_user()
        headers = auth_headers(owner.id)
        created = await _store(client, headers, owner.id)
        url = f"/messages/{created['id']}"

        destroy = await client.delete(url, headers=headers)
        show = await client.get(url, headers=headers)

        assert destroy.status_code == 204
        assert destroy.content == b""
        assert show.status_code == 404


@pytest.mark.integration
class TestIndex:
    """Listing with filters and optional paging."""

    async def test_lists_all_and_filters_by_user(
        self, client: AsyncClient, create_user: UserFactory, auth_headers: HeadersFactory
    ) -> None:
        alice = await create_user()
        bob = await create_user()
        headers = auth_headers(alice.id)
        for _ in range(2):
            await _store(client, headers, alice.id)
        await _store(client, headers, bob.id)

        everything = await client.get("/messages", headers=headers)
        only_bob = await client.get(f"/messages?userId={bob.id}", headers=headers)

        assert len(everything.json()["data"]) == 3
        assert "meta" not in everything.json()
        assert [m["userId"] for m in only_bob.json()["data"]] == [bob.id]

    async def test_comma_separated_filter(
        self, client: AsyncClient, create_user: UserFactory, auth_headers: HeadersFactory
    ) -> None:
        users = [await create_user() for _ in range(3)]
        headers = auth_headers(users[0].id)
        for user in users:
            await _store(client, headers, user.id)

        response = await client.get(
            "/messages", params={"userId": f"{users[0].id},{users[2].id}"}, headers=headers
        )

        assert {m["userId"] for m in response.json()["data"]} == {
            users[0].id,
            users[2].id,
        }

    async def test_filter_by_public_id_and_subject(
        self, client: AsyncClient, create_user: UserFactory, auth_headers: HeadersFactory
    ) -> None:
        owner = await create_user()
        headers = auth_headers(owner.id)
        first = await _store(client, headers, owner.id, subject="First")
        await _store(client, headers, owner.id, subject="Second")

        by_id = await client.get("/messages", params={"id": first["id"]}, headers=headers)
        by_subject = await client.get(
            "/messages", params={"subject": "Second"}, headers=headers
        )

        assert [m["id"] for m in by_id.json()["data"]] == [first["id"]]
        assert [m["subject"] for m in by_subject.json()["data"]] == ["Second"]

    async def test_unknown_filter_ignored_and_bad_value_matches_nothing(
        self, client: AsyncClient, create_user: UserFactory, auth_headers: HeadersFactory
    ) -> None:
        owner = await create_user()
        headers = auth_headers(owner.id)
        await _store(client, headers, owner.id)

        unknown = await client.get("/messages", params={"colour": "red"}, headers=headers)
        bad = await client.get("/messages", params={"userId": "abc"}, headers=headers)

        assert len(unknown.json()["data"]) == 1
        assert bad.status_code == 200
        assert bad.json()["data"] == []

    @pytest.mark.parametrize("value", [str(2**70), f"1,{2**70}"])
    async def test_out_of_range_filter_matches_nothing(
        self,
        client: AsyncClient,
        create_user: UserFactory,
        auth_headers: HeadersFactory,
        value: str,
    ) -> None:
        owner = await create_user()
        headers = auth_headers(owner.id)
        await _store(client, headers, owner.id)

        response = await client.get(
            "/messages", params={"userId": value}, headers=headers
        )

        assert response.status_code == 200
        assert response.json()["data"] == []

    async def test_paging(
        self, client: AsyncClient, create_user: UserFactory, auth_headers: HeadersFactory
    ) -> None:
        owner = await create_user()
        headers = auth_headers(owner.id)
        created = [await _store(client, headers, owner.id, subject=f"#{i}") for i in range(5)]

        response = await client.get(
            "/messages", params={"page": 2, "per_page": 2}, headers=headers
        )

        body = response.json()
        assert [m["id"] for m in body["data"]] == [created[2]["id"], created[3]["id"]]
        assert body["meta"]["pagination"] == {
            "total": 5,
            "count": 2,
            "per_page": 2,
            "current_page": 2,
            "total_pages": 3,
        }

    async def test_page_without_per_page_uses_default(
        self, client: AsyncClient, create_user: UserFactory, auth_headers: HeadersFactory
    ) -> None:
        owner = await create_user()
        headers = auth_headers(owner.id)
        await _store(client, headers, owner.id)

        response = await client.get("/messages", params={"page": 1}, headers=headers)

        assert response.json()["meta"]["pagination"]["per_page"] == 15

    @pytest.mark.parametrize(
        "params",
        [
            {"page": 0},
            {"per_page": 1000},
            {"page": "x"},
            {"page": 2**70},
            {"per_page": 2**70},
            {"page": 2**62},
        ],
    )
    async def test_invalid_paging(
        self,
        client: AsyncClient,
        create_user: UserFactory,
        auth_headers: HeadersFactory,
        params: dict[str, Any],
    ) -> None:
        owner = await create_user()

        response = await client.get(
            "/messages", params=params, headers=auth_headers(owner.id)
        )

        assert response.status_code == 422
