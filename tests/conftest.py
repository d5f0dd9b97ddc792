from types import SimpleNamespace
import pytest
from sqlalchemy.pool import StaticPool
from parkes.adapters.database import DatabaseAdapter
from parkes.context import Context
from tests.models import Organisation, Post, User


@pytest.fixture
def models():
    return {"Organisation": Organisation, "User": User, "Post": Post}


@pytest.fixture
async def adapter():
    # One shared connection, so every session sees the same in-memory database
    adapter = DatabaseAdapter(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await adapter.createTables()
    yield adapter
    await adapter.dispose()


@pytest.fixture
async def seed(adapter):
    async with adapter.getSession() as session:
        parkes = Organisation(name="Parkes", alias="parkes")
        session.add(parkes)
        await session.flush()

        harvey = User(name="Harvey Milk", email="harvey@example.com", organisation_id=parkes.id)
        sally = User(name="Sally Ride", email="sally@example.com", organisation_id=parkes.id)
        alan = User(name="Alan Turing")
        session.add_all([harvey, sally, alan])
        await session.flush()

        campaign = Post(name="Campaign launch", published=True, user_id=harvey.id)
        speech = Post(name="Hope speech", published=False, user_id=harvey.id)
        orbit = Post(name="Orbit notes", published=True, user_id=sally.id)
        session.add_all([campaign, speech, orbit])

    return SimpleNamespace(
        parkes=parkes,
        harvey=harvey,
        sally=sally,
        alan=alan,
        campaign=campaign,
        speech=speech,
        orbit=orbit,
    )


def make_context(query=None, params=None, data=None, body=None, href="http://example.com/resource"):
    """A request context as the router would build it"""
    if body is None:
        body = {"data": data} if data is not None else {}
    return Context(query=query, params=params, body=body, href=href)
