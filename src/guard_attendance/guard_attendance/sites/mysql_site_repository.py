from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Post, Site
from .repository import SiteRepository

_SITE_COLUMNS = "id, name, address, latitude, longitude, geofence_radius, is_active, created_at"
_POST_COLUMNS = "id, site_id, name, description, latitude, longitude, is_active, created_at"


def _row_to_site(r: Dict[str, Any]) -> Site:
    return Site(
        id=str(r["id"]),
        name=r["name"],
        address=r["address"],
        latitude=float(r["latitude"]),
        longitude=float(r["longitude"]),
        geofence_radius=int(r["geofence_radius"]),
        is_active=bool(r["is_active"]),
        created_at=r.get("created_at"),
    )


def _row_to_post(r: Dict[str, Any]) -> Post:
    return Post(
        id=str(r["id"]),
        site_id=str(r["site_id"]),
        name=r["name"],
        description=r.get("description"),
        latitude=float(r["latitude"]),
        longitude=float(r["longitude"]),
        is_active=bool(r["is_active"]),
        created_at=r.get("created_at"),
    )


class MySQLSiteRepository(SiteRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_sites(self) -> Sequence[Site]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SITE_COLUMNS} FROM sites WHERE is_active=1 ORDER BY name ASC")
            return [_row_to_site(r) for r in fetchall(cur)]

    def get_site(self, site_id: str) -> Optional[Site]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SITE_COLUMNS} FROM sites WHERE id=%s", (site_id,))
            r = fetchone(cur)
            return _row_to_site(r) if r else None

    def create_site(self, site: Site) -> Site:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO sites(id, name, address, latitude, longitude, geofence_radius, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (site.id, site.name, site.address, site.latitude, site.longitude, site.geofence_radius, int(site.is_active)),
            )
            cur.execute(f"SELECT {_SITE_COLUMNS} FROM sites WHERE id=%s", (site.id,))
            return _row_to_site(fetchone(cur))

    def list_posts(self, site_id: str) -> Sequence[Post]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_POST_COLUMNS} FROM posts WHERE site_id=%s AND is_active=1 ORDER BY name ASC",
                (site_id,),
            )
            return [_row_to_post(r) for r in fetchall(cur)]

    def get_post(self, post_id: str) -> Optional[Post]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_POST_COLUMNS} FROM posts WHERE id=%s", (post_id,))
            r = fetchone(cur)
            return _row_to_post(r) if r else None

    def create_post(self, post: Post) -> Post:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO posts(id, site_id, name, description, latitude, longitude, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (post.id, post.site_id, post.name, post.description, post.latitude, post.longitude, int(post.is_active)),
            )
            cur.execute(f"SELECT {_POST_COLUMNS} FROM posts WHERE id=%s", (post.id,))
            return _row_to_post(fetchone(cur))
