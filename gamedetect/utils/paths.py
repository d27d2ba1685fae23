"""gamedetect file path constants and well-known launcher locations."""

import os


# gamedetect data directory
GAMEDETECT_DATA_DIR = os.environ.get(
    "GAMEDETECT_DATA_DIR",
    os.path.expanduser("~/.local/share/gamedetect"),
)

# Cache and settings files
GAMES_CACHE_PATH = os.path.join(GAMEDETECT_DATA_DIR, "games_cache.json")
SETTINGS_PATH = os.path.join(GAMEDETECT_DATA_DIR, "settings.json")

# Registry hives
HKLM = "HKEY_LOCAL_MACHINE"
HKCU = "HKEY_CURRENT_USER"

# Steam
STEAM_USER_KEY = HKCU + r"\SOFTWARE\Valve\Steam"
STEAM_MACHINE_KEY = HKLM + r"\SOFTWARE\WOW6432Node\Valve\Steam"
DEFAULT_STEAM_PATHS = [
    os.path.expanduser("~/.steam/steam"),
    os.path.expanduser("~/.local/share/Steam"),
]
STEAM_ICON_URL = "https://cdn.cloudflare.steamstatic.com/steam/apps/{app_id}/header.jpg"

# Epic Games Launcher data (both files are JSON)
EPIC_LAUNCHER_INSTALLED = r"C:\ProgramData\Epic\UnrealEngineLauncher\LauncherInstalled.dat"
EPIC_MANIFESTS_DIR = r"C:\ProgramData\Epic\EpicGamesLauncher\Data\Manifests"

# Xbox / Microsoft Store
XBOX_GAMING_SERVICES_KEY = HKLM + r"\SOFTWARE\Microsoft\GamingServices"
XBOX_PACKAGES_DIR = r"C:\Program Files\WindowsApps"

# Origin / EA
DEFAULT_ORIGIN_PATHS = [
    r"C:\Program Files (x86)\Origin Games",
    r"C:\Program Files\Origin Games",
    r"C:\Program Files\EA Games",
]

# GOG
GOG_GAMES_KEY = HKLM + r"\SOFTWARE\WOW6432Node\GOG.com\Games"
DEFAULT_GOG_PATHS = [
    r"C:\GOG Games",
    r"C:\Program Files (x86)\GOG Galaxy\Games",
    os.path.expanduser("~/GOG Games"),
]

# Ubisoft Connect
UPLAY_INSTALLS_KEY = HKLM + r"\SOFTWARE\WOW6432Node\Ubisoft\Launcher\Installs"
DEFAULT_UPLAY_GAMES_PATH = r"C:\Program Files (x86)\Ubisoft\Ubisoft Game Launcher\games"

# Battle.net titles register themselves as regular uninstall entries
UNINSTALL_KEY = HKLM + r"\SOFTWARE\WOW6432Node\Microsoft\Windows\CurrentVersion\Uninstall"
