"""Route path codec.

A route path arrives in one of two forms:
  - A flat sequence of signed integers: coordinates at 1e5 fixed-point
    scale, each stored as the difference from the previous one, two values
    (lat, lng) per point.
  - A HERE Flexible Polyline string, which is what the HERE Routing v8 API
    returns for ``return=polyline``. These are decoded with the
    ``flexpolyline`` package.
"""

from collections.abc import Sequence

import flexpolyline

from errors import MalformedPolylineError

# Fixed-point scale of every integer-encoded coordinate.
PRECISION: float = 1e5


def decode(encoded: Sequence[int] | str) -> list[tuple[float, float]]:
    """Decodes [encoded] into an ordered list of (lat, lng) pairs.

    No bounds validation is applied to the resulting coordinates.

    Raises:
        MalformedPolylineError: If the integer form holds an odd number of
            values, or a Flexible Polyline string cannot be decoded.
    """
    if isinstance(encoded, str):
        return _decode_flexible(encoded)

    values = list(encoded)
    if len(values) % 2:
        raise MalformedPolylineError(
            f"Polyline has an odd number of values ({len(values)})."
        )

    result: list[tuple[float, float]] = []
    lat = 0
    lng = 0
    for i in range(0, len(values), 2):
        try:
            lat += int(values[i])
            lng += int(values[i + 1])
        except (TypeError, ValueError) as exc:
            raise MalformedPolylineError(
                f"Polyline value at index {i} is not an integer."
            ) from exc
        result.append((lat / PRECISION, lng / PRECISION))
    return result


def encode(path: Sequence[tuple[float, float]]) -> list[int]:
    """Encodes (lat, lng) pairs into the delta integer form read by ``decode``."""
    values: list[int] = []
    prev_lat = 0
    prev_lng = 0
    for lat, lng in path:
        lat_e5 = round(lat * PRECISION)
        lng_e5 = round(lng * PRECISION)
        values.append(lat_e5 - prev_lat)
        values.append(lng_e5 - prev_lng)
        prev_lat = lat_e5
        prev_lng = lng_e5
    return values


def _decode_flexible(encoded: str) -> list[tuple[float, float]]:
    """Decodes a HERE Flexible Polyline, dropping any third dimension."""
    if not encoded:
        return []
    try:
        points = flexpolyline.decode(encoded)
    except (ValueError, IndexError, KeyError, TypeError, StopIteration) as exc:
        raise MalformedPolylineError(
            f"Flexible polyline could not be decoded: {exc}"
        ) from exc
    return [(float(point[0]), float(point[1])) for point in points]
