import pytest
from click.testing import CliRunner
from unittest.mock import MagicMock

from containerctl.models.application import Application
from containerctl.models.config import ClientConfig
from containerctl.models.session import SSHSession


SAMPLE_APPLICATION = {
    "id": "8f4a3c1e-2b7d-4e9a-a1c3-5d6e7f8a9b0c",
    "name": "my-app",
    "created_at": "2025-06-01T12:00:00Z",
    "instances": 2,
    "version": 3,
    "configuration": {
        "image": "docker.io/example/app:1.0",
        "labels": [{"name": "team", "value": "core"}],
    },
    "scheduling_policy": "regional",
}

INSTANCE_ID = "a" * 64


@pytest.fixture
def cli_runner():
    """Provides a Click CLI runner for testing commands."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Point the config directory at a temp dir and clear env overrides."""
    config_dir = tmp_path / "config"
    monkeypatch.setenv("CONTAINERCTL_CONFIG_DIR", str(config_dir))
    for var in ("CONTAINERCTL_API_URL", "CONTAINERCTL_ACCOUNT_ID",
                "CONTAINERCTL_API_TOKEN", "CI"):
        monkeypatch.delenv(var, raising=False)
    return config_dir


@pytest.fixture
def client_config():
    """Provides a complete client configuration."""
    return ClientConfig(
        api_url="https://api.example.test/v4",
        account_id="acc123",
        api_token="secret-token",
    )


@pytest.fixture
def sample_application_data():
    return dict(SAMPLE_APPLICATION)


@pytest.fixture
def sample_application():
    return Application(**SAMPLE_APPLICATION)


@pytest.fixture
def instance_id():
    return INSTANCE_ID


@pytest.fixture
def ssh_session():
    return SSHSession(url="wss://relay.example.test/ssh", token="session-token")


@pytest.fixture
def mock_api_client(sample_application, ssh_session):
    """Provides a mocked API client with happy-path answers."""
    client = MagicMock()
    client.list_applications.return_value = [sample_application]
    client.get_application.return_value = sample_application
    client.create_application.return_value = sample_application
    client.delete_application.return_value = None
    client.create_ssh_session.return_value = ssh_session
    return client
