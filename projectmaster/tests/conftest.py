import pytest
from httpx import ASGITransport, AsyncClient

from projectmaster.common.enums import Role, TaskStatus
from projectmaster.common.security import create_access_token
from projectmaster.core.store.persistence import MemoryStorage
from projectmaster.core.store.store import Store
from projectmaster.core.sync.adapter import RemoteSyncAdapter
from projectmaster.core.sync.normalize import to_row
from projectmaster.domain.models import Project, Subcategory, Task, User
from projectmaster.integrations.ai_client import AIClient
from projectmaster.integrations.auth_provider import LocalAuthProvider
from projectmaster.integrations.memory_backend import MemoryBackend


# ---------- Users ----------


@pytest.fixture
def owner():
    return User(id="u-owner", name="Olivia Owner", username="olivia", role=Role.OWNER, email="olivia@test.com")


@pytest.fixture
def ops_manager():
    return User(id="u-ops", name="Oscar Ops", username="oscar", role=Role.OPS_MANAGER, email="oscar@test.com")


@pytest.fixture
def project_manager():
    return User(id="u-pm", name="Maya Manager", username="maya", role=Role.PROJECT_MANAGER, email="maya@test.com")


@pytest.fixture
def contractor():
    return User(id="u-con", name="Carl Contractor", username="carl", role=Role.CONTRACTOR, email="carl@test.com")


@pytest.fixture
def other_contractor():
    return User(id="u-con2", name="Dana Drywall", username="dana", role=Role.CONTRACTOR, email="dana@test.com")


@pytest.fixture
def all_users(owner, ops_manager, project_manager, contractor, other_contractor):
    return [owner, ops_manager, project_manager, contractor, other_contractor]


# ---------- Domain records ----------


@pytest.fixture
def project(owner, project_manager, contractor):
    return Project(
        id="p-1",
        name="Harbor House",
        owner_id=owner.id,
        project_manager_ids=(project_manager.id,),
        contractor_ids=(contractor.id,),
        created_at=1_700_000_000_000,
        updated_at=1_700_000_000_000,
    )


@pytest.fixture
def subcategory(project, project_manager):
    return Subcategory(id="s-1", project_id=project.id, name="Electrical", created_by=project_manager.id)


@pytest.fixture
def task(subcategory, project_manager):
    return Task(
        id="t-1",
        subcategory_id=subcategory.id,
        name="Run conduit",
        status=TaskStatus.PENDING,
        created_by=project_manager.id,
    )


# ---------- Store / sync ----------


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    return Store(storage, storage_key="test_state")


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
async def adapter(store, backend):
    adapter = RemoteSyncAdapter(store, backend)
    yield adapter
    await adapter.deactivate()


@pytest.fixture
async def seeded_backend(backend, all_users, project, subcategory, task):
    for user in all_users:
        await backend.upsert("users", to_row(user))
    await backend.upsert("projects", to_row(project))
    await backend.upsert("subcategories", to_row(subcategory))
    await backend.upsert("tasks", to_row(task))
    return backend


# ---------- API ----------


@pytest.fixture
def auth_provider():
    return LocalAuthProvider()


@pytest.fixture
async def client(seeded_backend, auth_provider):
    from projectmaster.main import app

    app.state.backend = seeded_backend
    app.state.auth_provider = auth_provider
    app.state.ai_client = AIClient()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.state.backend = None
    app.state.auth_provider = None
    app.state.ai_client = None


def _headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token({'sub': user.id})}"}


@pytest.fixture
def owner_headers(owner):
    return _headers(owner)


@pytest.fixture
def ops_headers(ops_manager):
    return _headers(ops_manager)


@pytest.fixture
def pm_headers(project_manager):
    return _headers(project_manager)


@pytest.fixture
def contractor_headers(contractor):
    return _headers(contractor)
