"""
Activity telemetry streams.

Strava returns one object per requested channel, tagged with `type`.
organize_stream_data() demultiplexes that list into a StreamSet and checks
it is usable for rebuilding a track:

- time and latlng are mandatory (MissingRequiredStreamError otherwise)
- every other channel present must have exactly as many samples as time
  (StreamAlignmentError otherwise); misaligned data is rejected, not
  truncated
"""
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Sequence

from core.exceptions import MissingRequiredStreamError, StreamAlignmentError
from schemas import StravaStream
from services.strava_service import get_activity_streams

# Strava stream type names
STREAM_TIME = "time"
STREAM_LATLNG = "latlng"
STREAM_ALTITUDE = "altitude"
STREAM_CADENCE = "cadence"
STREAM_HEARTRATE = "heartrate"
STREAM_WATTS = "watts"
STREAM_TEMP = "temp"

DEFAULT_STREAM_KEYS = [
    STREAM_LATLNG,
    STREAM_ALTITUDE,
    STREAM_CADENCE,
    STREAM_HEARTRATE,
    STREAM_WATTS,
    STREAM_TEMP,
    STREAM_TIME,
]


@dataclass(frozen=True)
class StreamSet:
    """Index-aligned telemetry channels. time is seconds since activity start."""
    time: List[float]
    latlng: List[Sequence[float]]
    altitude: Optional[List[Optional[float]]] = None
    cadence: Optional[List[Optional[float]]] = None
    heartrate: Optional[List[Optional[float]]] = None
    power: Optional[List[Optional[float]]] = None
    temp: Optional[List[Optional[float]]] = None

    def __len__(self) -> int:
        return len(self.time)

    def optional_channels(self) -> Iterator[tuple]:
        for name in ("latlng", "altitude", "cadence", "heartrate", "power", "temp"):
            values = getattr(self, name)
            if values is not None:
                yield name, values


def _find(streams: List[StravaStream], stream_type: str) -> Optional[List[Any]]:
    for stream in streams:
        if stream.type == stream_type:
            return stream.data
    return None


def organize_stream_data(streams: List[StravaStream]) -> StreamSet:
    latlng = _find(streams, STREAM_LATLNG)
    if latlng is None:
        raise MissingRequiredStreamError(STREAM_LATLNG)
    time = _find(streams, STREAM_TIME)
    if time is None:
        raise MissingRequiredStreamError(STREAM_TIME)

    stream_set = StreamSet(
        time=time,
        latlng=latlng,
        altitude=_find(streams, STREAM_ALTITUDE),
        cadence=_find(streams, STREAM_CADENCE),
        heartrate=_find(streams, STREAM_HEARTRATE),
        power=_find(streams, STREAM_WATTS),
        temp=_find(streams, STREAM_TEMP),
    )

    expected = len(stream_set.time)
    for name, values in stream_set.optional_channels():
        if len(values) != expected:
            raise StreamAlignmentError(name, len(values), expected)

    return stream_set


def fetch_stream_set(
    activity_id: int,
    access_token: str,
    channels: Optional[List[str]] = None,
) -> StreamSet:
    """Fetch the requested channels in one call and demultiplex them."""
    streams = get_activity_streams(activity_id, access_token, channels or DEFAULT_STREAM_KEYS)
    return organize_stream_data(streams)
