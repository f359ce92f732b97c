import pytest

from planrecur.config import ENV_SETTINGS, reset_config_cache


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep the developer's own planrecur config and environment out of the tests"""
    monkeypatch.setenv("HOME", str(tmp_path))
    for var in list(ENV_SETTINGS) + ["PLANRECUR_CONFIG_FILE", "PLANRECUR_CONFIG_SECTION"]:
        monkeypatch.delenv(var, raising=False)
    reset_config_cache()
    yield
    reset_config_cache()
