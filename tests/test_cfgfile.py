import json

import pytest

from aztfgen.cfgfile import (
    ConfigError,
    Configuration,
    config_path,
    get_config,
    get_installation_id_from_cli,
    get_installation_id_from_pwsh,
    get_key,
    set_key,
    update_configuration,
)


@pytest.mark.parametrize(
    "key, value, err",
    [
        ("nonexist", "123", 'invalid key "nonexist"'),
        ("installation_id", "123", "unmarshalling the new configuration"),
    ],
)
def test_update_configuration_errors(key, value, err):
    with pytest.raises(ConfigError) as excinfo:
        update_configuration(Configuration(), key, value)
    assert err in str(excinfo.value)


def test_update_configuration_valid():
    assert update_configuration(Configuration(), "installation_id", '"0000"') == Configuration(
        installation_id="0000"
    )


def test_update_configuration_invalid_json_value():
    with pytest.raises(ConfigError, match="unmarshalling the value"):
        update_configuration(Configuration(), "installation_id", "not json")


def _write_config(home, data):
    path = config_path(home)
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_config_path(tmp_path):
    assert config_path(tmp_path) == tmp_path / ".aztfy" / "config.json"


def test_get_config(tmp_path):
    _write_config(tmp_path, {"installation_id": "abc", "telemetry_enabled": True})
    assert get_config(tmp_path) == Configuration(installation_id="abc", telemetry_enabled=True)


def test_get_config_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="opening config"):
        get_config(tmp_path)


def test_get_key(tmp_path):
    _write_config(tmp_path, {"installation_id": "abc", "telemetry_enabled": False})
    assert get_key("installation_id", tmp_path) == "abc"
    assert get_key("telemetry_enabled", tmp_path) is False


def test_get_key_invalid(tmp_path):
    _write_config(tmp_path, {"installation_id": "abc"})
    with pytest.raises(ConfigError, match="invalid key"):
        get_key("nonexist", tmp_path)


def test_set_key_round_trip(tmp_path):
    path = _write_config(tmp_path, {"installation_id": "abc", "telemetry_enabled": False})
    set_key("telemetry_enabled", "true", tmp_path)
    assert get_config(tmp_path) == Configuration(installation_id="abc", telemetry_enabled=True)
    assert json.loads(path.read_text(encoding="utf-8")) == {
        "installation_id": "abc",
        "telemetry_enabled": True,
    }


def test_set_key_invalid_key_leaves_file(tmp_path):
    path = _write_config(tmp_path, {"installation_id": "abc", "telemetry_enabled": False})
    before = path.read_text(encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid key"):
        set_key("nonexist", "1", tmp_path)
    assert path.read_text(encoding="utf-8") == before


def test_installation_id_from_cli_with_bom(tmp_path):
    azure = tmp_path / ".azure"
    azure.mkdir()
    (azure / "azureProfile.json").write_bytes(
        b"\xef\xbb\xbf" + json.dumps({"installationId": "id-from-cli"}).encode()
    )
    assert get_installation_id_from_cli(tmp_path) == "id-from-cli"


def test_installation_id_from_cli_missing(tmp_path):
    azure = tmp_path / ".azure"
    azure.mkdir()
    (azure / "azureProfile.json").write_text("{}", encoding="utf-8")
    with pytest.raises(ConfigError, match="no installation id found"):
        get_installation_id_from_cli(tmp_path)


def test_installation_id_from_cli_no_file(tmp_path):
    with pytest.raises(ConfigError, match="reading"):
        get_installation_id_from_cli(tmp_path)


def test_installation_id_from_pwsh(tmp_path):
    azure = tmp_path / ".azure"
    azure.mkdir()
    (azure / "AzureRmContextSettings.json").write_text(
        json.dumps({"Settings": {"InstallationId": "id-from-pwsh"}}), encoding="utf-8"
    )
    assert get_installation_id_from_pwsh(tmp_path) == "id-from-pwsh"


def test_installation_id_from_pwsh_bad_json(tmp_path):
    azure = tmp_path / ".azure"
    azure.mkdir()
    (azure / "AzureRmContextSettings.json").write_text("{", encoding="utf-8")
    with pytest.raises(ConfigError, match="unmarshalling the file"):
        get_installation_id_from_pwsh(tmp_path)