"""iOS strings, Info.plist and pipeline tests."""

from __future__ import annotations

import plistlib
from pathlib import Path

import pytest

from l10nsync.config import SyncConfig
from l10nsync.graph import FileReference, ManifestSynchronizer, Project, ProjectGraph
from l10nsync.parsers.base import KeyNotFoundWarning, MissingTargetError, ResourceParseError
from l10nsync.parsers.ios import (
    InfoPlist,
    StringsFile,
    escape_strings_value,
    parse_strings,
    unescape_strings_value,
)
from l10nsync.parsers.locales import discover_locale_configs
from l10nsync.runtime.context import PlatformStatus, RunContext
from l10nsync.runtime.ios import update_ios_localizations

APP_DIR = Path("ios") / "App" / "App"
MANIFEST = Path("ios") / "App" / "App.xcodeproj" / "project.pbxproj"


def _run(project: Path, config: SyncConfig | None = None, dry_run: bool = False):
    context = RunContext(
        project_root=project, config=config or SyncConfig.default(), dry_run=dry_run
    )
    configs, _ = discover_locale_configs(context.localizations_dir)
    return update_ios_localizations(context, configs)


def _plist(project: Path) -> dict:
    with open(project / APP_DIR / "Info.plist", "rb") as f:
        return plistlib.load(f)


def test_strings_value_escaping() -> None:
    """Backslash, quote and newline are escaped and read back."""
    value = 'He said "hi"\nC:\\path'
    escaped = escape_strings_value(value)

    assert escaped == 'He said \\"hi\\"\\nC:\\\\path'
    assert unescape_strings_value(escaped) == value
    assert unescape_strings_value("tab\\there \\U00e9") == "tab\there é"


def test_parse_strings_with_comments() -> None:
    text = (
        "/* Bundle display name */\n"
        '"CFBundleDisplayName" = "Mon \\"App\\"";\n'
        "// camera\n"
        'NSCameraUsageDescription = "Accès caméra";\n'
    )
    assert parse_strings(text) == {
        "CFBundleDisplayName": 'Mon "App"',
        "NSCameraUsageDescription": "Accès caméra",
    }


def test_parse_strings_rejects_garbage() -> None:
    with pytest.raises(ValueError, match="line 2"):
        parse_strings('"a" = "b";\nnot an entry\n')


def test_strings_file_merge_keeps_existing_keys(tmp_path: Path) -> None:
    path = tmp_path / "fr.lproj" / "InfoPlist.strings"
    path.parent.mkdir()
    path.write_text('CFBundleName = "Ancien";\nNSCameraUsageDescription = "Caméra";\n', encoding="utf-8")

    bundle = StringsFile.load(path)
    bundle.update({"CFBundleName": "Nouveau", "CFBundleDisplayName": "Mon App"})
    bundle.write()

    assert path.read_text(encoding="utf-8") == (
        'CFBundleName = "Nouveau";\n'
        'NSCameraUsageDescription = "Caméra";\n'
        'CFBundleDisplayName = "Mon App";\n'
    )


def test_strings_file_reads_utf16(tmp_path: Path) -> None:
    path = tmp_path / "InfoPlist.strings"
    path.write_bytes('"key" = "välue";\n'.encode("utf-16"))
    assert StringsFile.load(path).entries == {"key": "välue"}


def test_strings_file_unparseable(tmp_path: Path) -> None:
    path = tmp_path / "InfoPlist.strings"
    path.write_text("key = value\n", encoding="utf-8")
    with pytest.raises(ResourceParseError):
        StringsFile.load(path)


def test_info_plist_select_keys_warns(tmp_path: Path) -> None:
    path = tmp_path / "Info.plist"
    path.write_bytes(plistlib.dumps({"CFBundleDisplayName": "App"}))
    info = InfoPlist.load(path)

    accepted, warnings = info.select_keys({"CFBundleDisplayName": "X", "Unknown": "Y"}, "fr")

    assert accepted == {"CFBundleDisplayName": "X"}
    assert len(warnings) == 1
    assert isinstance(warnings[0], KeyNotFoundWarning)
    assert str(warnings[0]) == 'Key "Unknown" not found in Info.plist, skipping (locale fr)'


@pytest.mark.parametrize(
    "mode, expected, modified",
    [
        ("overwrite", "Mon App", True),
        ("token", "$(CFBundleDisplayName)", True),
        ("keep", "App", False),
    ],
)
def test_info_plist_development_modes(tmp_path: Path, mode: str, expected: str, modified: bool) -> None:
    path = tmp_path / "Info.plist"
    path.write_bytes(plistlib.dumps({"CFBundleDisplayName": "App"}))
    info = InfoPlist.load(path)

    info.apply_development_values({"CFBundleDisplayName": "Mon App"}, mode)

    assert info.data["CFBundleDisplayName"] == expected
    assert info.modified is modified


def test_info_plist_localizations_union(tmp_path: Path) -> None:
    path = tmp_path / "Info.plist"
    path.write_bytes(plistlib.dumps({"CFBundleLocalizations": ["en", "it"]}))
    info = InfoPlist.load(path)

    info.add_localizations(["en", "fr"])
    assert info.data["CFBundleLocalizations"] == ["en", "it", "fr"]
    assert info.modified

    info.modified = False
    info.add_localizations(["fr"])
    assert not info.modified


def test_info_plist_invalid(tmp_path: Path) -> None:
    path = tmp_path / "Info.plist"
    path.write_text("not a plist", encoding="utf-8")
    with pytest.raises(ResourceParseError):
        InfoPlist.load(path)


def test_pipeline_updates_strings_plist_and_manifest(app_project: Path, write_locale) -> None:
    """End to end: strings files, Info.plist and the Xcode project are updated."""
    write_locale(
        "en",
        {"ios": {"CFBundleDisplayName": "Hello", "NSCameraUsageDescription": "Camera please"}},
    )
    write_locale(
        "fr",
        {"ios": {"CFBundleDisplayName": "Bonjour", "NSUnknownKey": "?"}},
    )

    result = _run(app_project)

    assert result.status == PlatformStatus.UPDATED
    assert [w.key for w in result.warnings] == ["NSUnknownKey"]

    fr_strings = (app_project / APP_DIR / "fr.lproj" / "InfoPlist.strings").read_text(encoding="utf-8")
    assert fr_strings == 'CFBundleDisplayName = "Bonjour";\n'
    assert (app_project / APP_DIR / "en.lproj" / "InfoPlist.strings").exists()

    plist = _plist(app_project)
    assert plist["CFBundleDisplayName"] == "Hello"
    assert plist["NSCameraUsageDescription"] == "Camera please"
    assert plist["CFBundleLocalizations"] == ["en", "fr"]
    assert "NSUnknownKey" not in plist

    graph = ProjectGraph.load(app_project / MANIFEST)
    paths = {ref.path for _, ref in graph.iter_nodes(FileReference)}
    assert {"en.lproj/InfoPlist.strings", "fr.lproj/InfoPlist.strings"} <= paths
    _, project = graph.project()
    assert project.known_regions == ["en", "Base", "fr"]


def test_pipeline_second_run_is_unchanged(app_project: Path, write_locale) -> None:
    write_locale("en", {"ios": {"CFBundleDisplayName": "Hello"}})
    write_locale("fr", {"ios": {"CFBundleDisplayName": "Bonjour"}})
    _run(app_project)
    manifest_before = (app_project / MANIFEST).read_text(encoding="utf-8")

    result = _run(app_project)

    assert result.status == PlatformStatus.UNCHANGED
    assert (app_project / MANIFEST).read_text(encoding="utf-8") == manifest_before


def test_pipeline_broken_manifest_is_not_written(app_project: Path, write_locale) -> None:
    """An integrity error fails the platform and leaves the manifest byte-identical."""
    manifest = app_project / MANIFEST
    broken = manifest.read_text(encoding="utf-8").replace(
        "isa = PBXResourcesBuildPhase;", "isa = PBXCopyFilesBuildPhase;"
    )
    manifest.write_text(broken, encoding="utf-8")
    write_locale("fr", {"ios": {"CFBundleDisplayName": "Bonjour"}})

    result = _run(app_project)

    assert result.status == PlatformStatus.FAILED
    assert manifest.read_text(encoding="utf-8") == broken
    assert (app_project / APP_DIR / "fr.lproj" / "InfoPlist.strings").exists()


def test_pipeline_project_update_disabled(app_project: Path, write_locale, pbxproj_text: str) -> None:
    config = SyncConfig.from_dict({"ios": {"update_project": False}})
    write_locale("fr", {"ios": {"CFBundleDisplayName": "Bonjour"}})

    result = _run(app_project, config=config)

    assert result.status == PlatformStatus.UPDATED
    assert (app_project / MANIFEST).read_text(encoding="utf-8") == pbxproj_text


def test_pipeline_token_mode(app_project: Path, write_locale) -> None:
    config = SyncConfig.from_dict({"ios": {"info_plist_mode": "token"}})
    write_locale("en", {"ios": {"CFBundleDisplayName": "Hello"}})

    _run(app_project, config=config)

    assert _plist(app_project)["CFBundleDisplayName"] == "$(CFBundleDisplayName)"


def test_pipeline_dry_run(app_project: Path, write_locale, pbxproj_text: str) -> None:
    write_locale("fr", {"ios": {"CFBundleDisplayName": "Bonjour"}})
    result = _run(app_project, dry_run=True)

    assert app_project / MANIFEST in result.written
    assert not (app_project / APP_DIR / "fr.lproj").exists()
    assert (app_project / MANIFEST).read_text(encoding="utf-8") == pbxproj_text
    assert "CFBundleLocalizations" not in _plist(app_project)


def test_pipeline_missing_ios_project(tmp_path: Path) -> None:
    (tmp_path / "localizations").mkdir()
    with pytest.raises(MissingTargetError, match="npx cap add ios"):
        _run(tmp_path)


def test_project_record_reads_regions(make_graph) -> None:
    _, project = make_graph().project()
    assert isinstance(project, Project)
    assert project.development_region == "en"


TRUNCATED_PLIST = '<?xml version="1.0" encoding="UTF-8"?>\n<plist version="1.0"><dict><key>A</key>'


def test_info_plist_truncated_xml(tmp_path: Path) -> None:
    """Broken XML surfaces as a resource parse error, not an expat error."""
    path = tmp_path / "Info.plist"
    path.write_text(TRUNCATED_PLIST, encoding="utf-8")
    with pytest.raises(ResourceParseError):
        InfoPlist.load(path)


def test_pipeline_truncated_info_plist_fails_platform(app_project: Path, write_locale) -> None:
    (app_project / APP_DIR / "Info.plist").write_text(TRUNCATED_PLIST, encoding="utf-8")
    write_locale("fr", {"ios": {"CFBundleDisplayName": "Bonjour"}})

    result = _run(app_project)

    assert result.status == PlatformStatus.FAILED
    assert result.errors
    assert not (app_project / APP_DIR / "fr.lproj").exists()


def test_pipeline_unreachable_objects_block_manifest_write(
    app_project: Path, write_locale, pbxproj_text: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A synchronization that would orphan objects leaves the manifest untouched."""
    monkeypatch.setattr(ManifestSynchronizer, "_ensure_child", lambda self, *args: None)
    write_locale("fr", {"ios": {"CFBundleDisplayName": "Bonjour"}})

    result = _run(app_project)

    assert result.status == PlatformStatus.FAILED
    assert any("unreachable" in error for error in result.errors)
    assert (app_project / MANIFEST).read_text(encoding="utf-8") == pbxproj_text
