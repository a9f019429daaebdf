import pytest

from entravault import open_vault
from entravault.backends.obfuscated_file import ObfuscatedFileBackend
from entravault.config import CONFIG_DIR_ENV, VaultConfig, default_config_dir
from entravault.token_cache import ClientKind

from .conftest import make_profile


def test_config_dir_override(monkeypatch, tmp_path):
    monkeypatch.setenv(CONFIG_DIR_ENV, str(tmp_path))
    config = VaultConfig.from_env()
    assert config.profiles_path == tmp_path / "profiles.json"
    assert config.secure_dir == tmp_path / "secure"
    assert config.last_token_path == tmp_path / "last-token.txt"


def test_default_locations(monkeypatch, tmp_path):
    monkeypatch.setenv("APPDATA", str(tmp_path))
    assert default_config_dir("win32") == tmp_path / "entratool"
    assert default_config_dir("linux").parts[-2:] == (".config", "entratool")


def test_open_vault_wires_one_backend(tmp_path):
    backend = ObfuscatedFileBackend(tmp_path / "secure")
    vault = open_vault(VaultConfig(config_dir=tmp_path), backend=backend)
    assert vault.profiles.backend is backend
    assert vault.exchange.repository is vault.profiles
    assert vault.token_cache("svc", ClientKind.PUBLIC).backend is backend


def test_open_vault_end_to_end(tmp_path):
    vault = open_vault(VaultConfig(config_dir=tmp_path), backend=ObfuscatedFileBackend(tmp_path / "secure"))
    vault.profiles.save(make_profile("svc"))
    vault.profiles.store_client_secret("svc", "s3cr3t")
    assert vault.profiles.validate(vault.profiles.get("SVC")).is_valid

    blob = vault.exchange.export_profile("svc", "pw", include_secrets=True)
    vault.profiles.delete("svc")
    assert vault.profiles.load_all() == []

    vault.exchange.import_profile(blob, "pw")
    assert vault.profiles.get_client_secret("svc") == "s3cr3t"


@pytest.mark.skipif("sys.platform != 'linux'")
def test_open_vault_selects_by_platform(monkeypatch, tmp_path):
    monkeypatch.setenv(CONFIG_DIR_ENV, str(tmp_path))
    vault = open_vault()
    assert isinstance(vault.backend, ObfuscatedFileBackend)
    assert vault.backend.directory == tmp_path / "secure"
