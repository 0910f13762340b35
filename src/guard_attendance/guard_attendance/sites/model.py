from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Site:
    """Named location with a geofence radius in meters."""

    id: str
    name: str
    address: str
    latitude: float
    longitude: float
    geofence_radius: int
    is_active: bool = True
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Post:
    """Physical checkpoint within a site."""

    id: str
    site_id: str
    name: str
    latitude: float
    longitude: float
    description: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
