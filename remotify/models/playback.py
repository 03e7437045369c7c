"""Playback state from Spotify."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RepeatState(str, Enum):
    OFF = "off"
    TRACK = "track"
    CONTEXT = "context"

    def next(self) -> "RepeatState":
        """Off -> Track -> Context -> Off."""
        return _REPEAT_CYCLE[self]


_REPEAT_CYCLE = {
    RepeatState.OFF: RepeatState.TRACK,
    RepeatState.TRACK: RepeatState.CONTEXT,
    RepeatState.CONTEXT: RepeatState.OFF,
}


@dataclass(frozen=True)
class SimplifiedPlayback:
    """The bits of current_playback() needed to target a player action."""
    device_id: Optional[str]
    is_playing: bool
    shuffle_state: bool
    repeat_state: RepeatState

    @classmethod
    def from_spotify(cls, pb: Optional[dict]) -> Optional["SimplifiedPlayback"]:
        if not pb:
            return None
        device = pb.get("device") or {}
        try:
            repeat = RepeatState(pb.get("repeat_state") or "off")
        except ValueError:
            repeat = RepeatState.OFF
        return cls(
            device_id=device.get("id"),
            is_playing=bool(pb.get("is_playing", False)),
            shuffle_state=bool(pb.get("shuffle_state", False)),
            repeat_state=repeat,
        )
