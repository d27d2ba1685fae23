"""
Tests for the JSON manifest reader and the AppxManifest.xml extractor.
"""
import pytest

from gamedetect.utils.appx import is_system_component, package_id_segment, parse_appx_manifest
from gamedetect.utils.manifests import ManifestError, read_json_manifest, require_fields, valid_entries


APPX_GAME = '''<?xml version="1.0" encoding="utf-8"?>
<Package xmlns="http://schemas.microsoft.com/appx/manifest/foundation/windows10"
         xmlns:uap="http://schemas.microsoft.com/appx/manifest/uap/windows10">
  <Identity Name="Microsoft.624F8B84B80" Publisher="CN=Microsoft Corporation" Version="1.0.1.0"
            ProcessorArchitecture="x64" />
  <Properties>
    <DisplayName>Forza Horizon 5</DisplayName>
    <PublisherDisplayName>Microsoft Studios</PublisherDisplayName>
  </Properties>
  <Applications>
    <Application Id="Game" Executable="ForzaHorizon5.exe" EntryPoint="Windows.FullTrustApplication">
      <uap:VisualElements DisplayName="Forza Horizon 5" />
    </Application>
  </Applications>
</Package>
'''

APPX_RUNTIME = '''<Package>
  <Identity Name="Microsoft.VCLibs.140.00.UWPDesktop" Version="14.0.30704.0" />
  <Properties>
    <DisplayName>Microsoft Visual C++ 2015 UWP Desktop Runtime Package</DisplayName>
    <Framework>true</Framework>
  </Properties>
</Package>
'''

APPX_RESOURCE_NAME = '''<Package>
  <Identity Name="Microsoft.MinecraftUWP" Version="1.20.0.0" />
  <Properties>
    <DisplayName>ms-resource:AppName</DisplayName>
  </Properties>
  <Applications>
    <Application Id="App" Executable="Minecraft.Windows.exe" />
  </Applications>
</Package>
'''


def test_read_json_manifest(tmp_path):
    path = tmp_path / "item.item"
    path.write_text('{"AppName": "Fortnite", "DisplayName": "Fortnite"}', encoding="utf-8")
    assert read_json_manifest(str(path))["DisplayName"] == "Fortnite"


def test_read_json_manifest_accepts_bom(tmp_path):
    path = tmp_path / "LauncherInstalled.dat"
    path.write_bytes(b'\xef\xbb\xbf{"InstallationList": []}')
    assert read_json_manifest(str(path)) == {"InstallationList": []}


def test_read_json_manifest_invalid_json(tmp_path):
    path = tmp_path / "bad.item"
    path.write_text('{"AppName": ', encoding="utf-8")
    with pytest.raises(ManifestError):
        read_json_manifest(str(path))


def test_read_json_manifest_rejects_non_object(tmp_path):
    path = tmp_path / "list.item"
    path.write_text('[1, 2]', encoding="utf-8")
    with pytest.raises(ManifestError):
        read_json_manifest(str(path))


def test_require_fields_reports_missing():
    with pytest.raises(ManifestError) as exc_info:
        require_fields({"AppName": "Fortnite", "InstallLocation": ""}, ["AppName", "InstallLocation"])
    assert "InstallLocation" in str(exc_info.value)


def test_valid_entries_skips_and_counts_malformed():
    entries = [
        {"AppName": "Fortnite", "InstallLocation": "C:\\Games\\Fortnite"},
        {"AppName": "NoLocation"},
        "garbage",
        {"AppName": "Sugar", "InstallLocation": "C:\\Games\\Sugar", "Extra": 1},
    ]
    good, skipped = valid_entries(entries, ("AppName", "InstallLocation"))
    assert [e["AppName"] for e in good] == ["Fortnite", "Sugar"]
    assert skipped == 2


def test_valid_entries_non_list_is_empty():
    assert valid_entries(None, ("AppName",)) == ([], 0)


def test_parse_appx_game():
    info = parse_appx_manifest(APPX_GAME)
    assert info.identity_name == "Microsoft.624F8B84B80"
    assert info.display_name == "Forza Horizon 5"
    assert info.executable == "ForzaHorizon5.exe"


def test_parse_appx_rejects_runtime_package():
    assert parse_appx_manifest(APPX_RUNTIME) is None


def test_parse_appx_resource_display_name_falls_back_to_identity():
    info = parse_appx_manifest(APPX_RESOURCE_NAME)
    assert info.display_name == "Microsoft.MinecraftUWP"
    assert info.executable == "Minecraft.Windows.exe"


def test_parse_appx_without_identity_is_skipped():
    assert parse_appx_manifest("<Package><Properties/></Package>") is None
    assert parse_appx_manifest("not xml at all") is None


@pytest.mark.parametrize("name", [
    "Microsoft.NET.Native.Framework.2.2",
    "Microsoft.VCLibs.140.00",
    "Microsoft.UI.Xaml.2.8",
    "Microsoft.DirectXRuntime",
])
def test_system_components_are_denylisted(name):
    assert is_system_component(name)


def test_games_are_not_denylisted():
    assert not is_system_component("Microsoft.624F8B84B80")
    assert not is_system_component("Halo Infinite")


def test_package_id_segment():
    assert package_id_segment("Microsoft.624F8B84B80_3.4.0.0_x64__8wekyb3d8bbwe") == "Microsoft.624F8B84B80"
    assert package_id_segment("NoUnderscore") == "NoUnderscore"


def test_require_fields_checks_types():
    with pytest.raises(ManifestError) as exc_info:
        require_fields({"AppName": ["Fortnite"], "InstallLocation": "C:\\Games"}, ["AppName", "InstallLocation"])
    assert "AppName" in str(exc_info.value)

    with pytest.raises(ManifestError):
        require_fields({"AppName": "Fortnite", "LaunchExecutable": 7}, ["AppName"], optional=["LaunchExecutable"])

    entry = {"AppName": "Fortnite", "LaunchExecutable": None}
    assert require_fields(entry, ["AppName"], optional=["LaunchExecutable", "DisplayName"]) is entry
