"""Configuration loading tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from l10nsync.config import SyncConfig
from l10nsync.runtime.config_loader import load_sync_config


def test_none_gives_defaults() -> None:
    config = load_sync_config(None)
    assert config == SyncConfig.default()
    assert config.android.res_dir == "android/app/src/main/res"
    assert config.ios.resource_dirs == ["ios/App/App", "ios/App"]
    assert config.ios.info_plist_mode == "overwrite"


def test_dict_source() -> None:
    config = load_sync_config({"android": {"default_locale": "de"}})
    assert config.android.default_locale == "de"
    assert config.ios.enabled


def test_toml_file(tmp_path: Path) -> None:
    path = tmp_path / "l10nsync.toml"
    path.write_text(
        'localizations_dir = "i18n"\n\n[ios]\ngroup_name = "App"\nbaseline_regions = ["Base"]\n',
        encoding="utf-8",
    )
    config = load_sync_config(path)

    assert config.localizations_dir == "i18n"
    assert config.ios.group_name == "App"


def test_json_file_given_as_string(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text('{"android": {"enabled": false}}', encoding="utf-8")
    assert load_sync_config(str(path)).android.enabled is False


def test_inline_strings() -> None:
    assert load_sync_config('{"ios": {"project_name": "Shop"}}').ios.project_name == "Shop"
    assert load_sync_config('[android]\nstrings_file = "l10n.xml"').android.strings_file == "l10n.xml"


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ValidationError):
        load_sync_config({"ios": {"colour": "blue"}})


@pytest.mark.parametrize(
    "section",
    [
        {"ios": {"strings_name": "Localizable.txt"}},
        {"ios": {"strings_name": "sub/InfoPlist.strings"}},
        {"ios": {"resource_dirs": []}},
        {"ios": {"info_plist_mode": "merge"}},
        {"android": {"language_mappings": {"zh-Hant": []}}},
    ],
)
def test_invalid_values_are_rejected(section: dict) -> None:
    with pytest.raises(ValidationError):
        load_sync_config(section)


def test_non_mapping_document() -> None:
    with pytest.raises(ValueError, match="mapping"):
        load_sync_config("[1, 2]")


def test_unsupported_source_type() -> None:
    with pytest.raises(TypeError):
        load_sync_config(42)  # type: ignore[arg-type]


def test_round_trip_through_dict() -> None:
    config = SyncConfig.from_dict({"ios": {"update_project": False}})
    assert SyncConfig.from_dict(config.to_dict()) == config
