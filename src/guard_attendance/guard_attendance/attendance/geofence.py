"""Great-circle geofence check.

Advisory only: a violation produces an exception record, it never blocks
the clock-in/out.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional

from ..core.constants import EARTH_RADIUS_M
from ..shifts.model import Shift
from ..sites.repository import SiteRepository
from .model import Coordinates

logger = logging.getLogger(__name__)


def haversine_m(a: Coordinates, b: Coordinates) -> float:
    lat1, lon1 = math.radians(a.latitude), math.radians(a.longitude)
    lat2, lon2 = math.radians(b.latitude), math.radians(b.longitude)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


@dataclass(frozen=True)
class GeofenceResult:
    post_id: str
    distance_m: float
    radius_m: int

    @property
    def inside(self) -> bool:
        return self.distance_m <= self.radius_m


class GeofenceCheck:
    def __init__(self, sites: SiteRepository, *, default_radius: Callable[[], int]):
        self._sites = sites
        self._default_radius = default_radius

    def check(self, shift: Shift, position: Coordinates) -> Optional[GeofenceResult]:
        """Distance from the shift's post; None when the post cannot be resolved."""

        post = self._sites.get_post(shift.post_id)
        if not post:
            logger.warning("Geofence skipped: post %s of shift %s not found", shift.post_id, shift.id)
            return None

        site = self._sites.get_site(post.site_id)
        radius = site.geofence_radius if site and site.geofence_radius else self._default_radius()
        if not site:
            logger.warning("Site %s of post %s not found; using default radius", post.site_id, post.id)

        distance = haversine_m(position, Coordinates(post.latitude, post.longitude))
        return GeofenceResult(post_id=post.id, distance_m=distance, radius_m=int(radius))
