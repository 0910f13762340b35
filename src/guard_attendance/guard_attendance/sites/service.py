from __future__ import annotations

from typing import Any, Mapping, Sequence

from ..audit.model import AuditContext
from ..audit.sink import AuditSink
from ..common.validators import (
    new_id,
    optional_str,
    require_latitude,
    require_longitude,
    require_non_empty,
    require_object,
    require_positive_int,
    require_uuid,
)
from ..core.constants import DEFAULT_GEOFENCE_RADIUS_M
from ..core.exceptions import NotFoundError, ValidationError
from ..database.mysql_base import ForeignKeyError
from .model import Post, Site
from .repository import SiteRepository


class SiteService:
    """Use case: manage sites and their posts (HR/admin)."""

    def __init__(self, sites: SiteRepository, audit: AuditSink):
        self._sites = sites
        self._audit = audit

    def list_sites(self) -> Sequence[Site]:
        return self._sites.list_sites()

    def list_posts(self, site_id: str) -> Sequence[Post]:
        return self._sites.list_posts(site_id)

    def get_site(self, site_id: str) -> Site:
        site = self._sites.get_site(site_id)
        if not site:
            raise NotFoundError("Site not found")
        return site

    def get_post(self, post_id: str) -> Post:
        post = self._sites.get_post(post_id)
        if not post:
            raise NotFoundError("Post not found")
        return post

    def create_site(self, payload: Any, *, context: AuditContext) -> Site:
        with self._audit.audited(action="CREATE_SITE", resource="Site", context=context) as outcome:
            data = require_object(payload)
            outcome.details["siteData"] = dict(data)

            radius = data.get("geofenceRadius")
            site = Site(
                id=new_id(),
                name=require_non_empty(data.get("name"), "name"),
                address=require_non_empty(data.get("address"), "address"),
                latitude=require_latitude(data.get("latitude")),
                longitude=require_longitude(data.get("longitude")),
                geofence_radius=DEFAULT_GEOFENCE_RADIUS_M if radius is None else require_positive_int(radius, "geofenceRadius"),
                is_active=_bool(data, "isActive"),
            )
            created = self._sites.create_site(site)
            outcome.resource_id = created.id
            return created

    def create_post(self, payload: Any, *, context: AuditContext) -> Post:
        with self._audit.audited(action="CREATE_POST", resource="Post", context=context) as outcome:
            data = require_object(payload)
            outcome.details["postData"] = dict(data)

            site_id = require_uuid(data.get("siteId"), "siteId")
            if not self._sites.get_site(site_id):
                raise ValidationError("siteId does not reference an existing site")

            post = Post(
                id=new_id(),
                site_id=site_id,
                name=require_non_empty(data.get("name"), "name"),
                description=optional_str(data.get("description")),
                latitude=require_latitude(data.get("latitude")),
                longitude=require_longitude(data.get("longitude")),
                is_active=_bool(data, "isActive"),
            )
            try:
                created = self._sites.create_post(post)
            except ForeignKeyError:
                raise ValidationError("siteId does not reference an existing site")
            outcome.resource_id = created.id
            return created


def _bool(data: Mapping[str, Any], key: str, default: bool = True) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ValidationError(f"{key} must be a boolean")
    return value
