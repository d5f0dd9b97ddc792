from unittest.mock import MagicMock
import httpx
import pytest
from fastapi import HTTPException, Request
from parkes.controllers.parkes import ParkesController
from parkes.controllers.router import ControllerConfigurator
from parkes.main import create_app
from parkes.policies import mark_private
from tests.models import UserView


def require_token(request: Request):
    if "x-token" not in request.headers:
        raise HTTPException(status_code=401, detail="Missing token")


@pytest.fixture
def authorize():
    return MagicMock(return_value=None)


@pytest.fixture
def app(models, adapter, authorize):
    users = ParkesController("user", {"models": models, "adapter": adapter, "authorize": authorize})
    posts = ParkesController(
        "post",
        {
            "models": models,
            "adapter": adapter,
            "authorize": authorize,
            "scope_models": ["user"],
            "foreign_keys": ["user"],
        },
    )
    return create_app(
        routers=[
            ControllerConfigurator(controller=users, policies_delete=[require_token]),
            ControllerConfigurator(controller=posts, path="/users/{user}/posts"),
            ControllerConfigurator(controller=posts),
            ControllerConfigurator(
                controller=users, path="/private/users", policies_universal=[mark_private]
            ),
            ControllerConfigurator(controller=users, path="/public/users", response_schema=UserView),
        ]
    )


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def test_index(client, seed):
    response = await client.get("/users")
    assert response.status_code == 200

    body = response.json()
    assert [user["name"] for user in body["data"]] == ["Alan Turing", "Sally Ride", "Harvey Milk"]
    assert body["pagination"] == {
        "total": 3,
        "pages": 1,
        "prevUrl": None,
        "nextUrl": None,
        "offset": 0,
        "limit": 100,
    }


async def test_index_page_links(client, seed):
    response = await client.get("/users", params={"limit": 1, "offset": 1})
    pagination = response.json()["pagination"]

    assert pagination["pages"] == 3
    assert pagination["prevUrl"] == "http://test/users?limit=1&offset=0"
    assert pagination["nextUrl"] == "http://test/users?limit=1&offset=2"


async def test_index_bad_sort(client, seed):
    response = await client.get("/users", params={"sort": "password_hash"})
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "invalid sort"


async def test_show(client, seed):
    response = await client.get(f"/users/{seed.harvey.uuid}")
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Harvey Milk"


async def test_show_missing(client, seed):
    response = await client.get("/users/missing")
    assert response.status_code == 404
    assert response.json() == {
        "errors": [
            {
                "status": 404,
                "code": "not found",
                "message": "Resource User with uuid missing was not found",
            }
        ]
    }


async def test_create(client, seed):
    response = await client.post("/users", json={"data": {"name": "Grace Hopper"}})
    assert response.status_code == 201

    created = response.json()["data"]
    assert created["name"] == "Grace Hopper"
    assert (await client.get(f"/users/{created['uuid']}")).status_code == 200


async def test_create_with_foreign_key(client, seed):
    response = await client.post(
        "/posts", json={"data": {"name": "Launch day", "user_uuid": seed.sally.uuid}}
    )
    assert response.status_code == 201
    assert response.json()["data"]["user_id"] == seed.sally.id


async def test_create_restricted(client, seed):
    response = await client.post("/users", json={"data": {"name": "Eve", "password": "x"}})
    assert response.status_code == 400
    assert response.json()["errors"][0] == {
        "status": 400,
        "code": "restricted field",
        "message": "You may not update the fields: password",
    }


async def test_create_invalid_json(client, seed):
    response = await client.post(
        "/users", content=b"{not json", headers={"content-type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "invalid body"


async def test_update(client, seed):
    response = await client.patch(
        f"/users/{seed.alan.uuid}", json={"data": {"email": "alan@example.com"}}
    )
    assert response.status_code == 200
    assert response.json()["data"]["email"] == "alan@example.com"

    response = await client.put(f"/users/{seed.alan.uuid}", json={"data": {"name": "A. Turing"}})
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "A. Turing"
    assert response.json()["data"]["email"] == "alan@example.com"


async def test_destroy(client, seed):
    response = await client.delete(f"/users/{seed.alan.uuid}", headers={"x-token": "t"})
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Alan Turing"

    assert (await client.get(f"/users/{seed.alan.uuid}")).status_code == 404


async def test_policy_blocks_the_action(client, authorize, seed):
    response = await client.delete(f"/users/{seed.alan.uuid}")
    assert response.status_code == 401
    assert authorize.call_count == 0
    assert (await client.get(f"/users/{seed.alan.uuid}")).status_code == 200


async def test_nested_index_is_scoped(client, seed):
    response = await client.get(f"/users/{seed.harvey.uuid}/posts", params={"sort": "name", "order": "asc"})
    assert response.status_code == 200
    assert [post["name"] for post in response.json()["data"]] == ["Campaign launch", "Hope speech"]


async def test_nested_index_with_missing_parent(client, seed):
    response = await client.get("/users/nobody/posts")
    assert response.status_code == 404
    assert response.json()["errors"][0]["message"] == "User with uuid nobody could not be found"


async def test_filter_by_query_string(client, seed):
    response = await client.get("/posts", params={"user": seed.sally.uuid})
    assert [post["name"] for post in response.json()["data"]] == ["Orbit notes"]


async def test_private_routes(client, authorize, seed):
    await client.get("/users")
    assert authorize.call_args.args[1]["is_private"] is False

    await client.get("/private/users")
    options = authorize.call_args.args[1]
    assert options["is_private"] is True
    assert options["scope"] == ".private"


async def test_response_schema_limits_fields(client, seed):
    response = await client.get(f"/public/users/{seed.harvey.uuid}")
    assert response.json()["data"] == {
        "uuid": seed.harvey.uuid,
        "name": "Harvey Milk",
        "email": "harvey@example.com",
    }

    response = await client.get("/public/users")
    assert all(set(user) == {"uuid", "name", "email"} for user in response.json()["data"])
    assert response.json()["pagination"]["total"] == 3


async def test_without_response_schema_every_column_is_sent(client, seed):
    response = await client.get(f"/users/{seed.harvey.uuid}")
    assert "password" in response.json()["data"]
