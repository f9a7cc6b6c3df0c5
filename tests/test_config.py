from __future__ import annotations

import os

from portal.core import config


def test_env_file_in_working_directory_is_loaded(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("PORTAL_TEST_VALUE", raising=False)
    monkeypatch.setenv("PORTAL_TEST_KEPT", "from-environment")
    (tmp_path / ".env").write_text(
        "# comment\nPORTAL_TEST_VALUE='from-file'\nPORTAL_TEST_KEPT=from-file\nnot a pair\n"
    )

    try:
        config._load_env()
        assert os.environ["PORTAL_TEST_VALUE"] == "from-file"
        assert os.environ["PORTAL_TEST_KEPT"] == "from-environment"
    finally:
        os.environ.pop("PORTAL_TEST_VALUE", None)


def test_env_loading_does_not_depend_on_bundled_executables():
    assert not hasattr(config, "sys")


def test_env_flag_parsing(monkeypatch):
    monkeypatch.setenv("PORTAL_TEST_FLAG", " Yes ")
    assert config._env_flag("PORTAL_TEST_FLAG", "false") is True
    monkeypatch.setenv("PORTAL_TEST_FLAG", "off")
    assert config._env_flag("PORTAL_TEST_FLAG", "true") is False
    assert config.TRUST_PROXY_HEADERS is False
