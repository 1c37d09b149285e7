"""
GPX 1.1 encoder for shifted activities.

Point timestamps are anchored to the activity's UTC start, moved by the
plan's delta, plus each sample's elapsed offset. The <metadata><time>
keeps the original, unshifted UTC start.

Optional channels are written per point only when that point has a value.
A missing heart-rate sample produces no <gpxtpx:hr> element; a zero would
be read as a real measurement.

<power> sits in the GPX namespace directly under <extensions>, the layout
Strava's own GPX exports use and its importer reads. GPX 1.1 only allows
foreign namespaces there, so strict XSD validation flags that element.
"""
import xml.etree.ElementTree as ET
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from schemas import StravaActivity
from services.activity_streams import StreamSet

GPX_NS = "http://www.topografix.com/GPX/1/1"
TPX_NS = "http://www.garmin.com/xmlschemas/TrackPointExtension/v1"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"

SCHEMA_LOCATION = " ".join([
    GPX_NS, "http://www.topografix.com/GPX/1/1/gpx.xsd",
    TPX_NS, "http://www.garmin.com/xmlschemas/TrackPointExtensionv1.xsd",
])

GPX_CREATOR = "StravaTimeShift"

# Strava activity type -> GPX <type> label understood by Strava's GPX importer.
ACTIVITY_TYPE_LABELS = {
    "Ride": "cycling",
}

ET.register_namespace("", GPX_NS)
ET.register_namespace("gpxtpx", TPX_NS)
ET.register_namespace("xsi", XSI_NS)


def _gpx(tag: str) -> str:
    return f"{{{GPX_NS}}}{tag}"


def _tpx(tag: str) -> str:
    return f"{{{TPX_NS}}}{tag}"


def format_gpx_time(moment: datetime) -> str:
    """Whole-second UTC, e.g. 2023-11-29T19:39:37Z."""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _format_number(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _value_at(channel: Optional[Sequence], i: int):
    if channel is None:
        return None
    return channel[i]


def _text_element(parent: ET.Element, tag: str, text: str) -> ET.Element:
    element = ET.SubElement(parent, tag)
    element.text = text
    return element


def activity_type_label(activity_type: str) -> str:
    return ACTIVITY_TYPE_LABELS.get(activity_type, activity_type)


def _append_track_point(trkseg: ET.Element, streams: StreamSet, i: int, point_time: datetime) -> None:
    lat, lon = streams.latlng[i][0], streams.latlng[i][1]
    trkpt = ET.SubElement(trkseg, _gpx("trkpt"), {"lat": f"{lat:.7f}", "lon": f"{lon:.7f}"})

    ele = _value_at(streams.altitude, i)
    if ele is not None:
        _text_element(trkpt, _gpx("ele"), f"{ele:.1f}")
    _text_element(trkpt, _gpx("time"), format_gpx_time(point_time))

    power = _value_at(streams.power, i)
    tpx_values = [
        ("atemp", _value_at(streams.temp, i)),
        ("hr", _value_at(streams.heartrate, i)),
        ("cad", _value_at(streams.cadence, i)),
    ]
    tpx_values = [(tag, value) for tag, value in tpx_values if value is not None]
    if power is None and not tpx_values:
        return

    extensions = ET.SubElement(trkpt, _gpx("extensions"))
    if power is not None:
        _text_element(extensions, _gpx("power"), _format_number(power))
    if tpx_values:
        tpx = ET.SubElement(extensions, _tpx("TrackPointExtension"))
        for tag, value in tpx_values:
            _text_element(tpx, _tpx(tag), _format_number(value))


def build_gpx_tree(activity: StravaActivity, streams: StreamSet, delta_seconds: float) -> ET.Element:
    root = ET.Element(_gpx("gpx"), {
        "version": "1.1",
        "creator": GPX_CREATOR,
        f"{{{XSI_NS}}}schemaLocation": SCHEMA_LOCATION,
    })
    metadata = ET.SubElement(root, _gpx("metadata"))
    _text_element(metadata, _gpx("time"), format_gpx_time(activity.start_time_utc))

    trk = ET.SubElement(root, _gpx("trk"))
    _text_element(trk, _gpx("name"), activity.name)
    _text_element(trk, _gpx("type"), activity_type_label(activity.type))
    trkseg = ET.SubElement(trk, _gpx("trkseg"))

    shifted_start = activity.start_time_utc + timedelta(seconds=delta_seconds)
    for i in range(len(streams)):
        point_time = shifted_start + timedelta(seconds=streams.time[i])
        _append_track_point(trkseg, streams, i, point_time)

    return root


def encode_gpx(activity: StravaActivity, streams: StreamSet, delta_seconds: float) -> bytes:
    """Serialize the shifted activity as a GPX document (UTF-8 bytes)."""
    root = build_gpx_tree(activity, streams, delta_seconds)
    ET.indent(root, space=" ")
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)
