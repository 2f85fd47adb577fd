import pytest

from xmlstreamer import ConfigurationError, StreamerSettings, load_settings


def test_defaults(clean_env, tmp_path):
    settings = load_settings(tmp_path / "missing.env")
    assert settings == StreamerSettings()
    assert settings.cursor_options() == {"huge_tree": False, "resolve_entities": False, "no_network": True}


def test_reads_env_file(clean_env, tmp_path):
    env = tmp_path / ".env"
    env.write_text(
        "XMLSTREAMER_ENCODING=ISO-8859-1\n"
        "XMLSTREAMER_HUGE_TREE=yes\n"
        "XMLSTREAMER_NO_NETWORK=0\n"
        "XMLSTREAMER_LOG_LEVEL=debug\n",
        encoding="utf-8",
    )
    settings = load_settings(env)
    assert settings.encoding == "ISO-8859-1"
    assert settings.huge_tree is True
    assert settings.resolve_entities is False
    assert settings.no_network is False
    assert settings.log_level == "DEBUG"


def test_environment_wins_over_env_file(clean_env, tmp_path):
    env = tmp_path / ".env"
    env.write_text("XMLSTREAMER_ENCODING=ISO-8859-1\n", encoding="utf-8")
    clean_env.setenv("XMLSTREAMER_ENCODING", "UTF-16")
    assert load_settings(env).encoding == "UTF-16"


@pytest.mark.parametrize("value", ["maybe", "2", "enabled"])
def test_invalid_boolean(clean_env, tmp_path, value):
    clean_env.setenv("XMLSTREAMER_HUGE_TREE", value)
    with pytest.raises(ConfigurationError, match="XMLSTREAMER_HUGE_TREE"):
        load_settings(tmp_path / "missing.env")


def test_unknown_log_level(clean_env, tmp_path):
    clean_env.setenv("XMLSTREAMER_LOG_LEVEL", "chatty")
    with pytest.raises(ConfigurationError, match="Unknown log level"):
        load_settings(tmp_path / "missing.env")
