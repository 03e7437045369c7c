"""Configuration: env, Spotify credentials, cache sizes, retry timings."""
import os
from dataclasses import dataclass
from pathlib import Path

# Base paths (project root = parent of remotify package)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env from project root so SPOTIFY_CLIENT_ID etc. are set
from dotenv import load_dotenv

load_dotenv(BASE_DIR / ".env")

DATA_DIR = Path(os.getenv("REMOTIFY_DATA_DIR", str(BASE_DIR / "data")))
SPOTIFY_TOKEN_CACHE = DATA_DIR / ".spotify-token"

# API
API_HOST = os.getenv("REMOTIFY_API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("REMOTIFY_API_PORT", "8000"))
LOG_LEVEL = os.getenv("REMOTIFY_LOG_LEVEL", "INFO").upper()

# Spotify (OAuth; tokens stored on disk after first connect)
SPOTIFY_CLIENT_ID = os.getenv("SPOTIFY_CLIENT_ID", "")
SPOTIFY_CLIENT_SECRET = os.getenv("SPOTIFY_CLIENT_SECRET", "")
SPOTIFY_REDIRECT_URI = os.getenv("SPOTIFY_REDIRECT_URI", "http://127.0.0.1:8000/api/spotify/callback")
SPOTIFY_SCOPES = " ".join(
    [
        "user-read-playback-state",
        "user-modify-playback-state",
        "user-read-currently-playing",
        "user-read-recently-played",
        "user-top-read",
        "user-follow-read",
        "user-follow-modify",
        "user-library-read",
        "user-library-modify",
        "playlist-read-private",
        "playlist-read-collaborative",
        "playlist-modify-private",
        "playlist-modify-public",
    ]
)
# After OAuth callback, redirect here (e.g. http://localhost:5173 for a dev front end)
REMOTIFY_WEB_ORIGIN = os.getenv("REMOTIFY_WEB_ORIGIN", "")

# Device picked first by ConnectDevice when no explicit id is given
DEFAULT_DEVICE = os.getenv("REMOTIFY_DEFAULT_DEVICE", "")

# One LRU per cache category (context, search, tracks, lyrics, images)
CACHE_CAPACITY = int(os.getenv("REMOTIFY_CACHE_CAPACITY", "64"))

# ConnectDevice: the target may take a while to show up on Spotify's side
CONNECT_ATTEMPTS = 10
CONNECT_RETRY_DELAY_SEC = 1.0

# Playback refresh after a player action
REFRESH_ROUNDS = 5
REFRESH_INTERVAL_SEC = 1.0

# Page size used for every first-page request
PAGE_LIMIT = 50


@dataclass(frozen=True)
class AppConfig:
    """Settings the request handlers read at runtime."""
    default_device: str = ""
    cache_capacity: int = 64


def load_app_config() -> AppConfig:
    return AppConfig(default_device=DEFAULT_DEVICE, cache_capacity=CACHE_CAPACITY)


def ensure_data_dir() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
