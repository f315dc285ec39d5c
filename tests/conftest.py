"""Root pytest configuration for stagedfs tests."""
import pytest

from stagedfs.content_type import SniffingDetector
from stagedfs.settings import Settings
from stagedfs.storage.fakes import InMemoryObjectGateway


# Configure pytest markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires real object store credentials)"
    )
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow (may take significant time)"
    )


# Keep ambient configuration from leaking into tests
@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Automatically clear stagedfs and cloud environment variables."""
    for name in (
        "STAGEDFS_SCRATCH_DIR", "STAGEDFS_SCRATCH_PREFIX", "STAGEDFS_LOCAL_ROOT",
        "STAGEDFS_HTTP_ENDPOINT", "STAGEDFS_HTTP_TIMEOUT", "STAGEDFS_HTTP_INSECURE",
        "AZURE_STORAGE_CONNECTION_STRING", "AZURE_STORAGE_ACCOUNT", "AZURE_STORAGE_KEY",
        "STAGEDFS_AZURE_BLOB_ENDPOINT", "STAGEDFS_EXT_TIMEOUT",
        "STAGEDFS_S3_ENDPOINT", "STAGEDFS_S3_REGION", "AWS_REGION",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def scratch_dir(tmp_path):
    """Directory holding scratch files of channels under test."""
    return tmp_path / "scratch"


# Standardized test fixtures
@pytest.fixture
def settings(scratch_dir):
    """Standard test settings with an isolated scratch directory."""
    return Settings(scratch_dir=str(scratch_dir))


@pytest.fixture
def gateway():
    """Standard in-memory object store for testing."""
    return InMemoryObjectGateway()


@pytest.fixture
def detector():
    """Standard content-type detector."""
    return SniffingDetector()


@pytest.fixture
def scratch_files(scratch_dir):
    """Callable listing scratch files currently left in the scratch directory."""
    def _list():
        if not scratch_dir.exists():
            return []
        return sorted(p.name for p in scratch_dir.iterdir())
    return _list
