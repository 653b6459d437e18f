"""
Test configuration and fixtures for fragments-api tests.
"""
import pytest
from fastapi.testclient import TestClient

from fragments_api.main import app
from fragments_api.dependencies import get_artifact_storage, get_converter, get_fragments_app_service
from fragments_api.domain.events import event_publisher
from fragments_api.domain.strategies import UUID4IdentifierStrategy
from fragments_api.services.conversion.converters import create_converter
from fragments_api.services.fragments_app_service import FragmentsAppService
from fragments_api.storage.filesystem import FilesystemArtifactStorage
from tests.stubs import StubGroupEngine


@pytest.fixture(autouse=True)
def clean_event_publisher():
    """Isolate event subscriptions between tests."""
    event_publisher.clear_subscribers()
    yield
    event_publisher.clear_subscribers()


@pytest.fixture
def storage_dir(tmp_path):
    """Create a storage directory for testing."""
    directory = tmp_path / "fragments"
    directory.mkdir()
    return directory


@pytest.fixture
def storage(storage_dir):
    """Create a test filesystem storage instance."""
    fs_storage = FilesystemArtifactStorage(base_dir=str(storage_dir))
    fs_storage.initialize()
    return fs_storage


@pytest.fixture
def make_client(storage):
    """Build a test client wired to the test storage and a given engine."""
    clients = []
    converters = []

    def _make(engine, **service_options):
        converter = create_converter(engine, timeout=5)
        converters.append(converter)
        service = FragmentsAppService(
            storage=storage,
            converter=converter,
            identifiers=UUID4IdentifierStrategy(),
            **service_options,
        )
        app.dependency_overrides[get_artifact_storage] = lambda: storage
        app.dependency_overrides[get_converter] = lambda: converter
        app.dependency_overrides[get_fragments_app_service] = lambda: service
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)
    for converter in converters:
        converter.close()
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client):
    """Create test client backed by a group-loading stub engine."""
    return make_client(StubGroupEngine(payload=b"\x01" * 40, fragments=3))
