"""Artist discography cleanup: chronological order, one album per title."""
from datetime import date
from typing import List

from remotify.models.entities import Album


def release_date_key(album: Album) -> date:
    """Sort key for an album's release date.

    Spotify reports dates as ``YYYY``, ``YYYY-MM`` or ``YYYY-MM-DD``; shorter
    forms are padded to the first day of the period so every pair of albums
    compares. Missing or malformed dates sort first.
    """
    parts = (album.release_date or "").split("-")
    try:
        year = int(parts[0])
        month = int(parts[1]) if len(parts) > 1 else 1
        day = int(parts[2]) if len(parts) > 2 else 1
        return date(year, month, day)
    except (ValueError, IndexError):
        return date.min


def clean_up_artist_albums(albums: List[Album]) -> List[Album]:
    """Sort by release date and drop same-name duplicates.

    For each name only the latest release survives (deluxe editions and
    reissues replace the original); the result stays in ascending date order.
    """
    ordered = sorted(albums, key=release_date_key)
    seen_names = set()
    kept: List[Album] = []
    for album in reversed(ordered):
        if album.name not in seen_names:
            seen_names.add(album.name)
            kept.append(album)
    kept.reverse()
    return kept
