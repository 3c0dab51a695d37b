# groupie_tracker/spotify/models.py

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Tuple

SPOTIFY_ARTIST_URL = "https://open.spotify.com/artist/{}"


def _first_image(images: Optional[List[Dict[str, Any]]]) -> str:
    for image in images or []:
        if image and image.get('url'):
            return image['url']
    return ""


def _external_url(data: Dict[str, Any]) -> str:
    return (data.get('external_urls') or {}).get('spotify') or ""


def _int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class AccessToken:
    """Bearer token held by the token manager"""
    value: str
    expires_at: float  # monotonic clock seconds

    def is_usable(self, now: float, safety_margin: float) -> bool:
        return now + safety_margin < self.expires_at


@dataclass(frozen=True)
class UpstreamArtist:
    """Artist record as returned by a Spotify search"""
    external_id: str
    name: str
    image_urls: Tuple[str, ...] = ()
    genres: Tuple[str, ...] = ()
    popularity: int = 0
    followers: int = 0
    profile_url: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> Optional['UpstreamArtist']:
        """Build from a raw artist object, None when id or name is missing"""
        if not data:
            return None
        external_id = data.get('id') or ""
        name = data.get('name') or ""
        if not external_id or not name:
            return None
        return cls(
            external_id=external_id,
            name=name,
            image_urls=tuple(img['url'] for img in data.get('images') or [] if img and img.get('url')),
            genres=tuple(data.get('genres') or []),
            popularity=_int(data.get('popularity')),
            followers=_int((data.get('followers') or {}).get('total')),
            profile_url=_external_url(data) or SPOTIFY_ARTIST_URL.format(external_id),
        )

    @property
    def image_url(self) -> str:
        return self.image_urls[0] if self.image_urls else ""


@dataclass(frozen=True)
class UpstreamArtistFull(UpstreamArtist):
    """Full artist profile from /artists/{id}"""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> Optional['UpstreamArtistFull']:
        return super().from_api(data)


@dataclass
class TrackInfo:
    name: str
    album_name: str = ""
    duration_ms: int = 0
    preview_url: str = ""
    external_url: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'TrackInfo':
        return cls(
            name=data.get('name') or "",
            album_name=(data.get('album') or {}).get('name') or "",
            duration_ms=_int(data.get('duration_ms')),
            preview_url=data.get('preview_url') or "",
            external_url=_external_url(data),
        )


@dataclass
class AlbumInfo:
    name: str
    release_date: str = ""
    image_url: str = ""
    total_tracks: int = 0
    external_url: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'AlbumInfo':
        return cls(
            name=data.get('name') or "",
            release_date=data.get('release_date') or "",
            image_url=_first_image(data.get('images')),
            total_tracks=_int(data.get('total_tracks')),
            external_url=_external_url(data),
        )


@dataclass
class RelatedArtistInfo:
    name: str
    image_url: str = ""
    genres: List[str] = field(default_factory=list)
    external_url: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'RelatedArtistInfo':
        return cls(
            name=data.get('name') or "",
            image_url=_first_image(data.get('images')),
            genres=list(data.get('genres') or []),
            external_url=_external_url(data),
        )


@dataclass(frozen=True)
class EarliestAlbum:
    name: str
    release_date: str = ""
    year: int = 0  # 0 = unknown


@dataclass(frozen=True)
class Artist:
    """Catalog entry; local_id is only stable for the lifetime of one cache entry"""
    local_id: int
    external_id: str
    name: str
    image_url: str = ""
    genres: Tuple[str, ...] = ()
    popularity: int = 0
    follower_count: int = 0
    first_album_name: str = ""
    first_album_date: str = ""
    first_album_year: int = 0
    external_profile_url: str = ""

    @classmethod
    def from_upstream(cls, local_id: int, upstream: UpstreamArtist,
                      earliest: Optional[EarliestAlbum] = None) -> 'Artist':
        earliest = earliest or EarliestAlbum(name="")
        return cls(
            local_id=local_id,
            external_id=upstream.external_id,
            name=upstream.name,
            image_url=upstream.image_url,
            genres=tuple(upstream.genres),
            popularity=upstream.popularity,
            follower_count=upstream.followers,
            first_album_name=earliest.name,
            first_album_date=earliest.release_date,
            first_album_year=earliest.year,
            external_profile_url=upstream.profile_url or SPOTIFY_ARTIST_URL.format(upstream.external_id),
        )


@dataclass
class ArtistDetail:
    """Artist plus detail data fetched fresh for one page view"""
    artist: Artist
    top_tracks: List[TrackInfo] = field(default_factory=list)
    albums: List[AlbumInfo] = field(default_factory=list)
    related_artists: List[RelatedArtistInfo] = field(default_factory=list)


@dataclass(frozen=True)
class CacheEntry:
    artists: Tuple[Artist, ...]
    fetched_at: float
