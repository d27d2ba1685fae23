# Utils package
from .kv import KVParseError, parse_kv, load_kv_file, kv_get, library_paths
from .manifests import ManifestError, read_json_manifest, valid_entries
from .appx import PackageInfo, parse_appx_manifest, is_system_component
from .registry import RegistryReader, DictRegistry, NullRegistry, WindowsRegistry, default_registry
from .files import find_executable, iter_game_dirs, directory_size, slugify

__all__ = [
    'KVParseError',
    'parse_kv',
    'load_kv_file',
    'kv_get',
    'library_paths',
    'ManifestError',
    'read_json_manifest',
    'valid_entries',
    'PackageInfo',
    'parse_appx_manifest',
    'is_system_component',
    'RegistryReader',
    'DictRegistry',
    'NullRegistry',
    'WindowsRegistry',
    'default_registry',
    'find_executable',
    'iter_game_dirs',
    'directory_size',
    'slugify',
]
