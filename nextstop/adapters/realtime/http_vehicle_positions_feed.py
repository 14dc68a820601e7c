from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from google.protobuf import json_format
from google.transit import gtfs_realtime_pb2

from nextstop.adapters.http.retrying_transport import RetryingTransport
from nextstop.app.ports.output import IVehicleFeedSource
from nextstop.domain.models.realtime import RealtimeVehicle

logger = logging.getLogger(__name__)

FEED_FORMATS = ("json", "protobuf")


def parse_headers(raw: str | None) -> dict[str, str]:
    """Parse 'Key:Value;Key2:Value2' into a header dict."""

    headers: dict[str, str] = {}
    for part in (raw or "").split(";"):
        if ":" not in part:
            continue
        k, v = part.split(":", 1)
        if k.strip():
            headers[k.strip()] = v.strip()
    return headers


@dataclass(slots=True)
class HttpVehiclePositionsFeed(IVehicleFeedSource):
    """Fetches a GTFS-Realtime VehiclePositions feed through the retrying transport.

    `feed_format` is "json" for the JSON rendering of FeedMessage (as published
    by Renfe) or "protobuf" for the binary encoding.
    """

    transport: RetryingTransport
    url: str
    feed_format: str = "json"
    headers: dict[str, str] | None = None

    def __post_init__(self) -> None:
        if self.feed_format not in FEED_FORMATS:
            raise ValueError(f"Unsupported feed format: {self.feed_format!r}")

    async def fetch_vehicles(self) -> tuple[RealtimeVehicle, ...]:
        content = await self.transport.get_bytes(self.url, headers=self.headers)
        feed = decode_feed_message(content, self.feed_format)
        vehicles = vehicles_from_feed(feed)
        logger.info(
            "Fetched vehicle positions",
            extra={"url": self.url, "entities": len(feed.entity), "vehicles": len(vehicles)},
        )
        return vehicles


def decode_feed_message(content: bytes, feed_format: str) -> gtfs_realtime_pb2.FeedMessage:
    feed = gtfs_realtime_pb2.FeedMessage()
    if feed_format == "protobuf":
        feed.ParseFromString(content)
    else:
        json_format.Parse(content.decode("utf-8"), feed, ignore_unknown_fields=True)
    return feed


def vehicles_from_feed(
    feed: gtfs_realtime_pb2.FeedMessage,
) -> tuple[RealtimeVehicle, ...]:
    out: list[RealtimeVehicle] = []
    status_names = gtfs_realtime_pb2.VehiclePosition.VehicleStopStatus

    for ent in feed.entity:
        if not ent.HasField("vehicle"):
            continue

        v = ent.vehicle
        if not v.HasField("position"):
            continue

        pos = v.position

        trip_id = None
        route_id = None
        if v.HasField("trip"):
            trip_id = v.trip.trip_id or None
            route_id = v.trip.route_id or None

        vehicle_id = None
        label = None
        if v.HasField("vehicle"):
            vehicle_id = v.vehicle.id or None
            label = v.vehicle.label or None

        timestamp = None
        if v.HasField("timestamp") and int(v.timestamp) > 0:
            timestamp = datetime.fromtimestamp(int(v.timestamp), tz=timezone.utc)

        current_status = None
        if v.HasField("current_status"):
            current_status = status_names.Name(v.current_status)

        out.append(
            RealtimeVehicle(
                vehicle_id=vehicle_id,
                trip_id=trip_id,
                route_id=route_id,
                lat=float(pos.latitude),
                lon=float(pos.longitude),
                bearing=float(pos.bearing) if pos.HasField("bearing") else None,
                speed_mps=float(pos.speed) if pos.HasField("speed") else None,
                timestamp=timestamp,
                stop_id=v.stop_id or None,
                current_status=current_status,
                label=label,
            )
        )

    return tuple(out)
