import pytest

from respond.config import configure
from tests.helpers import FILE_CONTENT


@pytest.fixture(autouse=True)
def reset_settings():
    """Each test starts from the default response settings."""
    configure()
    yield
    configure()


@pytest.fixture
def sample_file(tmp_path):
    path = tmp_path / "sample.bin"
    path.write_bytes(FILE_CONTENT)
    return path
