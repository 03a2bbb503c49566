from __future__ import annotations

from pathlib import Path

import pytest

from workflow_analyzer.config.settings import load_settings
from workflow_analyzer.core.exceptions import ConfigurationError

ENV = {
    "MIRO_ACCESS_TOKEN": "miro-token",
    "OPENAI_API_KEY": "sk-test",
    "TARGET_API_BASE_URL": "https://tp.example.com/",
    "TARGET_API_ACCESS_TOKEN": "tp-token",
}

OPTIONAL = [
    "PROJECT_ID",
    "AZURE_OPENAI_API_KEY",
    "AZURE_OPENAI_ENDPOINT",
    "AZURE_OPENAI_DEPLOYMENT",
    "OPENAI_MODEL",
    "OUTPUT_DIR",
    "MIRO_DEFAULT_BOARD_ID",
    "PORT",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # Keep a developer's .env out of the picture.
    monkeypatch.chdir(tmp_path)
    for name in list(ENV) + OPTIONAL:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def full_env(clean_env):
    for name, value in ENV.items():
        clean_env.setenv(name, value)
    return clean_env


def test_loads_from_environment(full_env):
    settings = load_settings(project_id="42")
    assert settings.project_id == 42
    assert settings.miro_access_token == "miro-token"
    assert settings.target_api_base_url == "https://tp.example.com"
    assert settings.openai_model == "gpt-4o"
    assert settings.output_dir == Path("./output")
    assert settings.port == 3000
    assert settings.azure_openai_endpoint is None


def test_project_id_argument_overrides_env(full_env):
    full_env.setenv("PROJECT_ID", "7")
    assert load_settings().project_id == 7
    assert load_settings(project_id=9).project_id == 9


def test_azure_aliases(full_env):
    full_env.delenv("OPENAI_API_KEY")
    full_env.setenv("AZURE_OPENAI_API_KEY", "azure-key")
    full_env.setenv("AZURE_OPENAI_DEPLOYMENT", "gpt-4o-mini")
    full_env.setenv("AZURE_OPENAI_ENDPOINT", "https://res.openai.azure.com")
    settings = load_settings(project_id=1)
    assert settings.openai_api_key == "azure-key"
    assert settings.openai_model == "gpt-4o-mini"
    assert settings.azure_openai_endpoint == "https://res.openai.azure.com"


def test_missing_values_fail_fast(clean_env):
    clean_env.setenv("MIRO_ACCESS_TOKEN", "miro-token")
    with pytest.raises(ConfigurationError) as excinfo:
        load_settings(project_id=1)
    message = excinfo.value.message
    assert message.startswith("Missing required configuration")
    assert "OPENAI_API_KEY" in message
    assert "TARGET_API_ACCESS_TOKEN" in message
    assert "MIRO_ACCESS_TOKEN" not in message


def test_missing_project_id(full_env):
    with pytest.raises(ConfigurationError) as excinfo:
        load_settings()
    assert "PROJECT_ID" in excinfo.value.message


def test_invalid_project_id(full_env):
    with pytest.raises(ConfigurationError) as excinfo:
        load_settings(project_id="abc")
    assert excinfo.value.message == "Invalid configuration"


def test_reads_dotenv_file(clean_env, tmp_path):
    lines = [f"{name}={value}" for name, value in ENV.items()] + ["PROJECT_ID=5"]
    (tmp_path / ".env").write_text("\n".join(lines) + "\n", encoding="utf-8")
    assert load_settings().project_id == 5
