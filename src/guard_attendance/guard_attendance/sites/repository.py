from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Post, Site


class SiteRepository(Protocol):
    def list_sites(self) -> Sequence[Site]:
        raise NotImplementedError

    def get_site(self, site_id: str) -> Optional[Site]:
        raise NotImplementedError

    def create_site(self, site: Site) -> Site:
        raise NotImplementedError

    def list_posts(self, site_id: str) -> Sequence[Post]:
        raise NotImplementedError

    def get_post(self, post_id: str) -> Optional[Post]:
        raise NotImplementedError

    def create_post(self, post: Post) -> Post:
        raise NotImplementedError
