import pytest

from competency_report import config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in config.DEFAULTS:
        monkeypatch.delenv(f"{config.ENV_PREFIX}{key.upper()}", raising=False)


def test_defaults_without_config_file(tmp_path):
    settings = config.get_settings(str(tmp_path / 'missing.config'))
    assert settings == config.Settings(api_base_url='/api', request_timeout=30.0, log_level='INFO')


def test_config_file_values(tmp_path):
    path = tmp_path / '.config'
    path.write_text(
        "# reports backend\n"
        "API_BASE_URL=\"https://reports.example.org/api/\"\n"
        "request_timeout=12\n"
        "log_level=debug\n"
    )
    settings = config.get_settings(str(path))
    assert settings.api_base_url == 'https://reports.example.org/api'
    assert settings.request_timeout == 12.0
    assert settings.log_level == 'DEBUG'


def test_environment_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / '.config'
    path.write_text("api_base_url=http://file/api\n")
    monkeypatch.setenv('COMPETENCY_API_BASE_URL', 'http://env/api')

    assert config.get_config('api_base_url', str(path)) == 'http://env/api'


def test_invalid_timeout_falls_back(tmp_path):
    path = tmp_path / '.config'
    path.write_text("request_timeout=soon\n")
    assert config.get_settings(str(path)).request_timeout == 30.0
