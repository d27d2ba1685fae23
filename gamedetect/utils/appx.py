"""
AppxManifest.xml extraction for Microsoft Store / Xbox packages.

Package manifests are read with tolerant regex extraction rather than a
schema-validated parse: WindowsApps holds thousands of packages, many with
namespaces and resource references, and one odd file must not stop a scan.
"""
import logging
import re
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

MANIFEST_NAME = 'AppxManifest.xml'

# Framework and runtime packages that share the directory with games
SYSTEM_COMPONENT_KEYWORDS = (
    'runtime',
    'framework',
    'vclibs',
    '.net',
    'ui.xaml',
    'directx',
    'gamingservices',
    'xboxidentityprovider',
    'xboxgamecallableui',
    'storepurchaseapp',
    'windowsstore',
    'desktopappinstaller',
    'webexperience',
    'microsoft.services.store',
    'microsoft.advertising',
    'codec',
    'extension',
)

_IDENTITY_RE = re.compile(r'<Identity\b[^>]*?\bName\s*=\s*"([^"]+)"', re.IGNORECASE | re.DOTALL)
_DISPLAY_NAME_RE = re.compile(r'<(?:\w+:)?DisplayName>\s*([^<]+?)\s*</(?:\w+:)?DisplayName>', re.IGNORECASE)
_EXECUTABLE_RE = re.compile(r'<Application\b[^>]*?\bExecutable\s*=\s*"([^"]+)"', re.IGNORECASE | re.DOTALL)
_FRAMEWORK_RE = re.compile(r'<Framework>\s*true\s*</Framework>', re.IGNORECASE)


@dataclass
class PackageInfo:
    identity_name: str
    display_name: str
    executable: Optional[str] = None


def is_system_component(name: str) -> bool:
    """Return True if a package or display name looks like a runtime/system component."""
    lowered = name.lower()
    return any(keyword in lowered for keyword in SYSTEM_COMPONENT_KEYWORDS)


def parse_appx_manifest(text: str) -> Optional[PackageInfo]:
    """
    Extract identity name, display name and executable from manifest text.

    Returns None for anything that should not be listed as a game: framework
    packages, system components, or text without an Identity element.
    """
    identity = _IDENTITY_RE.search(text)
    if not identity:
        return None
    identity_name = identity.group(1).strip()

    if _FRAMEWORK_RE.search(text):
        return None

    display = _DISPLAY_NAME_RE.search(text)
    display_name = display.group(1).strip() if display else ''
    # ms-resource: names need the package's resource table, use the identity instead
    if not display_name or display_name.lower().startswith('ms-resource:'):
        display_name = identity_name

    if is_system_component(identity_name) or is_system_component(display_name):
        logger.debug(f"[Appx] Ignoring system component {identity_name}")
        return None

    executable = _EXECUTABLE_RE.search(text)
    return PackageInfo(
        identity_name=identity_name,
        display_name=display_name,
        executable=executable.group(1).strip() if executable else None,
    )


def package_id_segment(dir_name: str) -> str:
    """Leading segment of a package directory name (before the first underscore)."""
    return dir_name.split('_', 1)[0]
