"""Tests for YAML configuration loading and settings seeding."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from nira_companion.config_manager import Config, load_config, read_yaml, validate_config
from nira_companion.init_settings import DEFAULT_GLOBAL_PROMPT, init_settings
from nira_companion.memory.memory_service import MemoryService
from nira_companion.memory.storage.sqlite_store import SQLiteDocumentStore

REPO_ROOT = Path(__file__).resolve().parents[1]

CONFIG_YAML = """
system_config:
  port: 8080
  admin_api_key: '${NIRA_TEST_ADMIN_KEY}'
llm_config:
  providers:
    - name: 'groq'
      base_url: 'https://api.groq.example/openai/v1'
      api_key: '${NIRA_TEST_GROQ_KEY}'
      model: 'llama-test'
  history_window: 4
policy_config:
  default_trial_limit_minutes: 15
"""


def _write(tmp_path, text, name="conf.yaml"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestLoadConfig:
    def test_env_substitution(self, tmp_path, monkeypatch):
        monkeypatch.setenv("NIRA_TEST_GROQ_KEY", "gsk-from-env")
        monkeypatch.setenv("NIRA_TEST_ADMIN_KEY", "admin-from-env")

        config = load_config(_write(tmp_path, CONFIG_YAML))

        assert config.system_config.port == 8080
        assert config.system_config.admin_api_key == "admin-from-env"
        provider = config.llm_config.providers[0]
        assert provider.api_key == "gsk-from-env"
        assert provider.type == "openai_compatible"
        assert config.llm_config.history_window == 4
        assert config.policy_config.default_trial_limit_minutes == 15

    def test_unknown_variable_left_as_is(self, tmp_path, monkeypatch):
        monkeypatch.delenv("NIRA_TEST_GROQ_KEY", raising=False)
        data = read_yaml(_write(tmp_path, CONFIG_YAML))
        assert data["llm_config"]["providers"][0]["api_key"] == "${NIRA_TEST_GROQ_KEY}"

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_config(str(tmp_path / "absent.yaml"))
        assert isinstance(config, Config)
        assert [p.name for p in config.llm_config.providers] == ["groq", "gemini"]

    def test_read_yaml_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_yaml(str(tmp_path / "absent.yaml"))

    def test_empty_file(self, tmp_path):
        assert read_yaml(_write(tmp_path, "")) == {}

    def test_utf8_bom_is_stripped(self, tmp_path):
        path = tmp_path / "bom.yaml"
        path.write_bytes("\ufeffsystem_config:\n  port: 8080\n".encode("utf-8"))
        assert read_yaml(str(path)) == {"system_config": {"port": 8080}}

    def test_non_utf8_file_is_decoded(self, tmp_path):
        path = tmp_path / "latin.yaml"
        text = "system_config:\n  port: 8080\n# Caf\u00e9 na\u00efve r\u00e9sum\u00e9 d\u00e9j\u00e0 vu\n"
        path.write_bytes(text.encode("latin-1"))
        assert read_yaml(str(path))["system_config"]["port"] == 8080

    def test_default_config_file_is_valid(self):
        config = load_config(str(REPO_ROOT / "conf.default.yaml"))
        assert [p.name for p in config.llm_config.providers] == ["groq", "gemini"]
        assert config.memory_config.extraction.every_n_turns == 5
        assert config.memory_config.summarization.every_n_interactions == 10


class TestValidation:
    def test_duplicate_provider_names(self):
        provider = {"name": "groq", "base_url": "https://x.example", "model": "m"}
        with pytest.raises(ValidationError):
            validate_config({"llm_config": {"providers": [provider, provider]}})

    def test_bad_port(self):
        with pytest.raises(ValidationError):
            validate_config({"system_config": {"port": 70000}})

    @pytest.mark.parametrize("port", [-1, 65536])
    def test_port_bounds(self, port):
        with pytest.raises(ValidationError, match="Port must be between 0 and 65535"):
            validate_config({"system_config": {"port": port}})

    def test_port_validator_returns_model(self):
        config = validate_config({"system_config": {"port": 65535}})
        assert config.system_config.port == 65535

    def test_name_confirmation_needs_placeholder(self):
        with pytest.raises(ValidationError):
            validate_config({"persona_config": {"name_confirmation": "Thanks!"}})

    def test_empty_fallback_pool(self):
        with pytest.raises(ValidationError):
            validate_config({"persona_config": {"fallback_responses": []}})

    def test_parent_directory_db_path_rejected(self):
        with pytest.raises(ValidationError):
            validate_config(
                {"memory_config": {"storage": {"sqlite_db_path": "../outside.db"}}}
            )


class TestInitSettings:
    def _config(self, tmp_path):
        return validate_config(
            {"memory_config": {"storage": {"sqlite_db_path": str(tmp_path / "seed.db")}}}
        )

    async def _read_settings(self, config):
        store = SQLiteDocumentStore(config.memory_config.storage.sqlite_db_path)
        await store.initialize()
        try:
            return await MemoryService(store).get_global_settings()
        finally:
            await store.close()

    async def test_creates_defaults_once(self, tmp_path):
        config = self._config(tmp_path)

        assert await init_settings(config) is True
        assert await init_settings(config) is False

        settings = await self._read_settings(config)
        assert settings.trial_limit_minutes == 5
        assert settings.maintenance_mode is False
        assert settings.global_prompt == DEFAULT_GLOBAL_PROMPT

    async def test_force_overwrites(self, tmp_path):
        config = self._config(tmp_path)
        await init_settings(config)

        store = SQLiteDocumentStore(config.memory_config.storage.sqlite_db_path)
        await store.initialize()
        await MemoryService(store).update_global_settings({"maintenanceMode": True})
        await store.close()

        assert await init_settings(config, force=True) is True
        assert (await self._read_settings(config)).maintenance_mode is False
