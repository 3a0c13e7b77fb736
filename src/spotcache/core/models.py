"""Response shapes for the catalog endpoints.

Only the fields the client reads are declared; anything else in the payload
is ignored so upstream additions never break parsing.
"""

from __future__ import annotations

import typing as t
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = t.TypeVar("T")


class _Shape(BaseModel):
    model_config = ConfigDict(extra="ignore")


class ExternalUrls(_Shape):
    spotify: str


class Image(_Shape):
    url: str
    height: t.Optional[int] = None
    width: t.Optional[int] = None


class Followers(_Shape):
    total: int


class Page(_Shape, t.Generic[T]):
    href: str
    items: t.List[T]
    limit: int
    next: t.Optional[str] = None
    offset: int
    previous: t.Optional[str] = None
    total: int


class SimplifiedArtist(_Shape):
    id: str
    name: str
    external_urls: ExternalUrls
    href: t.Optional[str] = None


class Artist(SimplifiedArtist):
    followers: t.Optional[Followers] = None
    genres: t.List[str] = Field(default_factory=list)
    images: t.List[Image] = Field(default_factory=list)
    popularity: t.Optional[int] = None


class SimplifiedAlbum(_Shape):
    id: str
    name: str
    album_type: str
    total_tracks: int
    release_date: str
    artists: t.List[SimplifiedArtist]
    external_urls: ExternalUrls
    images: t.List[Image] = Field(default_factory=list)


class SimplifiedTrack(_Shape):
    id: str
    name: str
    artists: t.List[SimplifiedArtist]
    duration_ms: int
    explicit: bool = False
    track_number: int
    disc_number: int = 1
    preview_url: t.Optional[str] = None
    external_urls: ExternalUrls


class Album(SimplifiedAlbum):
    genres: t.List[str] = Field(default_factory=list)
    label: t.Optional[str] = None
    popularity: t.Optional[int] = None
    tracks: t.Optional[Page[SimplifiedTrack]] = None


class Track(_Shape):
    id: str
    name: str
    album: SimplifiedAlbum
    artists: t.List[SimplifiedArtist]
    duration_ms: int
    preview_url: t.Optional[str] = None
    external_urls: ExternalUrls


class TracksResponse(_Shape):
    tracks: t.List[Track]


class ArtistsResponse(_Shape):
    artists: t.List[Artist]


class NewReleases(_Shape):
    albums: Page[SimplifiedAlbum]


class GenreSeeds(_Shape):
    genres: t.List[str]


class PlaylistOwner(_Shape):
    id: str
    display_name: t.Optional[str] = None


class PlaylistTrackItem(_Shape):
    added_at: t.Optional[str] = None
    track: t.Optional[Track] = None


class Playlist(_Shape):
    id: str
    name: str
    description: t.Optional[str] = None
    owner: PlaylistOwner
    external_urls: ExternalUrls
    images: t.List[Image] = Field(default_factory=list)
    tracks: Page[PlaylistTrackItem]


class RecommendationsRequest(_Shape):
    """Seeds and tunable attributes for ``/recommendations``.

    Up to 5 seeds in total across artists, genres and tracks. Unset fields
    are left out of the query string.
    """

    limit: t.Optional[int] = Field(default=None, ge=1, le=100)
    market: t.Optional[str] = None
    seed_artists: t.Optional[t.List[str]] = None
    seed_genres: t.Optional[t.List[str]] = None
    seed_tracks: t.Optional[t.List[str]] = None
    min_acousticness: t.Optional[float] = None
    max_acousticness: t.Optional[float] = None
    target_acousticness: t.Optional[float] = None
    min_danceability: t.Optional[float] = None
    max_danceability: t.Optional[float] = None
    target_danceability: t.Optional[float] = None
    min_duration_ms: t.Optional[int] = None
    max_duration_ms: t.Optional[int] = None
    target_duration_ms: t.Optional[int] = None
    min_energy: t.Optional[float] = None
    max_energy: t.Optional[float] = None
    target_energy: t.Optional[float] = None
    min_instrumentalness: t.Optional[float] = None
    max_instrumentalness: t.Optional[float] = None
    target_instrumentalness: t.Optional[float] = None
    min_key: t.Optional[int] = None
    max_key: t.Optional[int] = None
    target_key: t.Optional[int] = None
    min_liveness: t.Optional[float] = None
    max_liveness: t.Optional[float] = None
    target_liveness: t.Optional[float] = None
    min_loudness: t.Optional[float] = None
    max_loudness: t.Optional[float] = None
    target_loudness: t.Optional[float] = None
    min_mode: t.Optional[int] = None
    max_mode: t.Optional[int] = None
    target_mode: t.Optional[int] = None
    min_popularity: t.Optional[int] = None
    max_popularity: t.Optional[int] = None
    target_popularity: t.Optional[int] = None
    min_speechiness: t.Optional[float] = None
    max_speechiness: t.Optional[float] = None
    target_speechiness: t.Optional[float] = None
    min_tempo: t.Optional[float] = None
    max_tempo: t.Optional[float] = None
    target_tempo: t.Optional[float] = None
    min_time_signature: t.Optional[int] = None
    max_time_signature: t.Optional[int] = None
    target_time_signature: t.Optional[int] = None
    min_valence: t.Optional[float] = None
    max_valence: t.Optional[float] = None
    target_valence: t.Optional[float] = None

    def seed_count(self) -> int:
        return sum(len(seeds or []) for seeds in (self.seed_artists, self.seed_genres, self.seed_tracks))

    def to_query_string(self) -> str:
        params = []
        for key, value in self.model_dump(exclude_none=True).items():
            if isinstance(value, list):
                value = ",".join(value)
            params.append((key, value))
        return urlencode(params, safe=",")


class RecommendationSeed(_Shape):
    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)

    id: str
    type: str
    href: t.Optional[str] = None
    initial_pool_size: int
    after_filtering_size: int
    after_relinking_size: int


class RecommendationsResponse(_Shape):
    seeds: t.List[RecommendationSeed]
    tracks: t.List[Track]
