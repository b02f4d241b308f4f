"""Android strings.xml merge and pipeline tests."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

from l10nsync.config import SyncConfig
from l10nsync.parsers.android import AndroidStringsFile, values_folders
from l10nsync.parsers.base import MissingTargetError, ResourceParseError, merge_entries
from l10nsync.parsers.locales import discover_locale_configs
from l10nsync.runtime.android import update_android_localizations
from l10nsync.runtime.context import PlatformStatus, RunContext

RES = Path("android") / "app" / "src" / "main" / "res"


def _strings(path: Path) -> dict:
    root = ET.parse(path).getroot()
    return {el.get("name"): "".join(el.itertext()) for el in root.findall("string")}


def _run(project: Path, dry_run: bool = False):
    context = RunContext(project_root=project, config=SyncConfig.default(), dry_run=dry_run)
    configs, _ = discover_locale_configs(context.localizations_dir)
    return update_android_localizations(context, configs)


def test_merge_entries_is_right_biased() -> None:
    merged = merge_entries({"a": "1", "b": "2"}, {"b": "two", "c": "3"})
    assert merged == {"a": "1", "b": "two", "c": "3"}
    assert list(merged) == ["a", "b", "c"]


@pytest.mark.parametrize(
    "locale, expected",
    [
        ("fr", ["values-fr"]),
        ("en", ["values"]),
        ("zh-Hans", ["values-zh-rCN"]),
        ("zh-Hant", ["values-zh-rHK", "values-zh-rTW", "values-zh-rMO"]),
    ],
)
def test_values_folders(locale: str, expected: list) -> None:
    assert values_folders(locale) == expected


def test_values_folders_custom_default_and_mappings() -> None:
    assert values_folders("de", default_locale="de", mappings={}) == ["values"]
    assert values_folders("en", default_locale="de", mappings={}) == ["values-en"]
    assert values_folders("pt-BR", mappings={"pt-BR": ["pt-rBR"]}) == ["values-pt-rBR"]


def test_update_preserves_unrelated_resources(tmp_path: Path) -> None:
    """Entries not being updated keep their markup; other resources are carried over."""
    path = tmp_path / "strings.xml"
    path.write_text(
        '<?xml version="1.0" encoding="utf-8"?>\n'
        '<resources xmlns:tools="http://schemas.android.com/tools">\n'
        "    <!-- Main screen -->\n"
        '    <string name="app_name">Old</string>\n'
        '    <string name="rich">Hello <b>World</b></string>\n'
        '    <string name="internal" tools:ignore="MissingTranslation">x</string>\n'
        '    <plurals name="items">\n'
        '        <item quantity="one">%d item</item>\n'
        '        <item quantity="other">%d items</item>\n'
        "    </plurals>\n"
        "</resources>\n",
        encoding="utf-8",
    )

    bundle = AndroidStringsFile.load(path)
    bundle.update({"app_name": "Nouveau", "greeting": "Bonjour"})
    rendered = bundle.render()

    assert "<!-- Main screen -->" in rendered
    assert '<string name="rich">Hello <b>World</b></string>' in rendered
    assert 'tools:ignore="MissingTranslation"' in rendered
    assert 'xmlns:tools="http://schemas.android.com/tools"' in rendered
    assert '<item quantity="one">%d item</item>' in rendered
    assert rendered.index('name="app_name"') < rendered.index('name="greeting"')

    bundle.write()
    assert _strings(path) == {
        "app_name": "Nouveau",
        "rich": "Hello World",
        "internal": "x",
        "greeting": "Bonjour",
    }


def test_special_characters_survive_xml_parsing(tmp_path: Path) -> None:
    """Escaped values read back unchanged through a standard XML parser."""
    value = 'Tom & "Jerry" <3 it\'s'
    bundle = AndroidStringsFile(tmp_path / "strings.xml")
    bundle.update({"show": value})
    bundle.write()

    assert _strings(tmp_path / "strings.xml") == {"show": value}


def test_duplicate_names_keep_last(tmp_path: Path) -> None:
    path = tmp_path / "strings.xml"
    path.write_text(
        '<resources><string name="a">1</string><string name="a">2</string></resources>',
        encoding="utf-8",
    )
    assert AndroidStringsFile.load(path).entries == {"a": "2"}


def test_malformed_file_raises(tmp_path: Path) -> None:
    path = tmp_path / "strings.xml"
    path.write_text("<resources><string name='a'>oops</resources>", encoding="utf-8")
    with pytest.raises(ResourceParseError):
        AndroidStringsFile.load(path)


def test_wrong_root_raises(tmp_path: Path) -> None:
    path = tmp_path / "strings.xml"
    path.write_text("<manifest/>", encoding="utf-8")
    with pytest.raises(ResourceParseError, match="expected <resources>"):
        AndroidStringsFile.load(path)


def test_pipeline_writes_default_and_locale_folders(app_project: Path, write_locale) -> None:
    """en goes to values/, fr to values-fr/; existing keys are kept."""
    write_locale("en", {"android": {"title_activity_main": "Home"}})
    write_locale("fr", {"android": {"app_name": "Mon App", "title_activity_main": "Accueil"}})

    result = _run(app_project)

    assert result.status == PlatformStatus.UPDATED
    assert _strings(app_project / RES / "values" / "strings.xml") == {
        "app_name": "My App",
        "title_activity_main": "Home",
    }
    assert _strings(app_project / RES / "values-fr" / "strings.xml") == {
        "app_name": "Mon App",
        "title_activity_main": "Accueil",
    }


def test_pipeline_second_run_is_unchanged(app_project: Path, write_locale) -> None:
    write_locale("fr", {"android": {"app_name": "Mon App"}})
    _run(app_project)

    result = _run(app_project)
    assert result.status == PlatformStatus.UNCHANGED
    assert result.written == []


def test_pipeline_expands_mapped_locales(app_project: Path, write_locale) -> None:
    write_locale("zh-Hant", {"android": {"app_name": "我的應用"}})
    result = _run(app_project)

    assert len(result.written) == 3
    for qualifier in ("zh-rHK", "zh-rTW", "zh-rMO"):
        assert _strings(app_project / RES / f"values-{qualifier}" / "strings.xml") == {
            "app_name": "我的應用"
        }


def test_pipeline_dry_run_writes_nothing(app_project: Path, write_locale) -> None:
    write_locale("de", {"android": {"app_name": "Meine App"}})
    result = _run(app_project, dry_run=True)

    assert result.written == [app_project / RES / "values-de" / "strings.xml"]
    assert not (app_project / RES / "values-de").exists()


def test_pipeline_skips_malformed_existing_file(app_project: Path, write_locale) -> None:
    """A file that cannot be parsed is left as-is; other locales still update."""
    broken = app_project / RES / "values-es" / "strings.xml"
    broken.parent.mkdir()
    broken.write_text("<resources>", encoding="utf-8")
    write_locale("es", {"android": {"app_name": "Mi App"}})
    write_locale("fr", {"android": {"app_name": "Mon App"}})

    result = _run(app_project)

    assert result.status == PlatformStatus.PARTIAL
    assert len(result.errors) == 1
    assert broken.read_text(encoding="utf-8") == "<resources>"
    assert (app_project / RES / "values-fr" / "strings.xml").exists()


def test_pipeline_locale_without_android_section(app_project: Path, write_locale) -> None:
    write_locale("fr", {"ios": {"CFBundleDisplayName": "Mon App"}})
    result = _run(app_project)

    assert result.status == PlatformStatus.UNCHANGED
    assert not (app_project / RES / "values-fr").exists()


def test_pipeline_missing_res_dir(tmp_path: Path) -> None:
    (tmp_path / "localizations").mkdir()
    with pytest.raises(MissingTargetError, match="npx cap add android"):
        _run(tmp_path)
