from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from propconf.adapters.identity import TokenIdentity
from propconf.adapters.memory_repo import (
    InMemoryAssetStorage,
    InMemoryGalleryRepository,
    InMemoryPropertyRepository,
)
from propconf.api.http import (  # ensures imports resolve; run tests from repo root
    app,
    get_gallery,
    get_identity,
    get_properties,
    get_storage,
)

ADMIN_TOKEN = "test-admin-token"


@pytest.fixture
def repos():
    return SimpleNamespace(
        properties=InMemoryPropertyRepository(),
        gallery=InMemoryGalleryRepository(),
        storage=InMemoryAssetStorage(),
    )


@pytest.fixture
def client(repos):
    app.dependency_overrides[get_properties] = lambda: repos.properties
    app.dependency_overrides[get_gallery] = lambda: repos.gallery
    app.dependency_overrides[get_storage] = lambda: repos.storage
    app.dependency_overrides[get_identity] = lambda: TokenIdentity([ADMIN_TOKEN])
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}
