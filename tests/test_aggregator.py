"""Unit tests for ArtistAggregator."""

from __future__ import annotations

from typing import Dict, List, Union

import pytest

from groupie_tracker.catalog.aggregator import FALLBACK_QUERY, ArtistAggregator
from groupie_tracker.spotify.exceptions import AuthError, UpstreamError
from groupie_tracker.spotify.models import EarliestAlbum, UpstreamArtist


def upstream(external_id: str, name: str) -> UpstreamArtist:
    return UpstreamArtist(external_id=external_id, name=name, profile_url=f"https://open.spotify.com/artist/{external_id}")


class FakeSpotify:
    """Stands in for SpotifyConnector: canned search results per query"""

    def __init__(self, results: Dict[str, Union[List[UpstreamArtist], Exception]],
                 albums: Dict[str, Union[EarliestAlbum, Exception, None]] = None) -> None:
        self.results = results
        self.albums = albums or {}
        self.queries: List[str] = []
        self.album_lookups: List[str] = []

    def search_artists(self, query: str, limit: int = 20) -> List[UpstreamArtist]:
        self.queries.append(query)
        result = self.results.get(query, [])
        if isinstance(result, Exception):
            raise result
        return list(result)[:limit]

    def get_earliest_album(self, external_id: str):
        self.album_lookups.append(external_id)
        result = self.albums.get(external_id)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def small_config():
    return {"per_query_limit": 20, "target_total": 100, "min_threshold": 1, "floor": 1, "show_progress": False}


def make_aggregator(spotify, config, logger, seeds, names=()):
    return ArtistAggregator(spotify, config, logger, seed_queries=seeds, name_seeds=names)


class TestAggregation:
    def test_duplicates_collapse_into_sequential_ids(self, small_config, logger):
        spotify = FakeSpotify({
            "q1": [upstream("a1", "Foo")],
            "q2": [upstream("a1", "Foo")],
            "q3": [upstream("a2", "Bar")],
        })

        artists = make_aggregator(spotify, small_config, logger, ["q1", "q2", "q3"]).fetch_all()

        assert [(a.local_id, a.name) for a in artists] == [(1, "Foo"), (2, "Bar")]

    def test_first_occurrence_keeps_its_position(self, small_config, logger):
        spotify = FakeSpotify({
            "q1": [upstream("a1", "One"), upstream("a2", "Two")],
            "q2": [upstream("a3", "Three"), upstream("a1", "One again")],
        })

        artists = make_aggregator(spotify, small_config, logger, ["q1", "q2"]).fetch_all()

        assert [a.external_id for a in artists] == ["a1", "a2", "a3"]
        assert artists[0].name == "One"

    def test_failing_seed_queries_are_skipped(self, small_config, logger):
        spotify = FakeSpotify({
            "q1": UpstreamError("boom", status=500),
            "q2": [upstream("a1", "Foo")],
        })

        artists = make_aggregator(spotify, small_config, logger, ["q1", "q2"]).fetch_all()

        assert [a.name for a in artists] == ["Foo"]

    def test_stops_once_target_reached(self, small_config, logger):
        small_config["target_total"] = 2
        spotify = FakeSpotify({
            "q1": [upstream("a1", "A"), upstream("a2", "B"), upstream("a3", "C")],
            "q2": [upstream("a4", "D")],
        })

        artists = make_aggregator(spotify, small_config, logger, ["q1", "q2"]).fetch_all()

        assert [a.external_id for a in artists] == ["a1", "a2"]
        assert spotify.queries == ["q1"]

    def test_name_seeds_fill_gap_below_threshold(self, small_config, logger):
        small_config["min_threshold"] = 3
        spotify = FakeSpotify({
            "q1": [upstream("a1", "A")],
            "Queen": [upstream("a2", "Queen")],
            "Stromae": [upstream("a1", "A"), upstream("a3", "Stromae")],
        })

        artists = make_aggregator(spotify, small_config, logger, ["q1"], ["Queen", "Stromae"]).fetch_all()

        assert [a.external_id for a in artists] == ["a1", "a2", "a3"]

    def test_name_seeds_skipped_when_threshold_met(self, small_config, logger):
        spotify = FakeSpotify({"q1": [upstream("a1", "A")]})

        make_aggregator(spotify, small_config, logger, ["q1"], ["Queen"]).fetch_all()

        assert "Queen" not in spotify.queries

    def test_fallback_query_runs_below_floor(self, small_config, logger):
        small_config["floor"] = 5
        spotify = FakeSpotify({
            "q1": [upstream("a1", "A")],
            FALLBACK_QUERY: [upstream("a1", "A"), upstream("a9", "Z")],
        })

        artists = make_aggregator(spotify, small_config, logger, ["q1"]).fetch_all()

        assert spotify.queries[-1] == FALLBACK_QUERY
        assert [a.external_id for a in artists] == ["a1", "a9"]

    def test_everything_failing_raises_upstream_error(self, small_config, logger):
        spotify = FakeSpotify({
            "q1": UpstreamError("down", status=503),
            FALLBACK_QUERY: UpstreamError("down", status=503),
        })

        with pytest.raises(UpstreamError):
            make_aggregator(spotify, small_config, logger, ["q1"]).fetch_all()

    def test_everything_empty_raises_upstream_error(self, small_config, logger):
        spotify = FakeSpotify({})

        with pytest.raises(UpstreamError):
            make_aggregator(spotify, small_config, logger, ["q1", "q2"]).fetch_all()

    def test_failed_fallback_keeps_partial_results(self, small_config, logger):
        small_config["floor"] = 5
        spotify = FakeSpotify({
            "q1": [upstream("a1", "A")],
            FALLBACK_QUERY: UpstreamError("down", status=503),
        })

        artists = make_aggregator(spotify, small_config, logger, ["q1"]).fetch_all()

        assert [a.name for a in artists] == ["A"]

    def test_auth_failure_aborts_pass(self, small_config, logger):
        spotify = FakeSpotify({"q1": AuthError(status=400, body="invalid_client"), "q2": [upstream("a1", "A")]})

        with pytest.raises(AuthError):
            make_aggregator(spotify, small_config, logger, ["q1", "q2"]).fetch_all()


class TestFirstAlbumEnrichment:
    def test_earliest_album_is_attached(self, small_config, logger):
        spotify = FakeSpotify(
            {"q1": [upstream("a1", "Foo")]},
            albums={"a1": EarliestAlbum(name="Debut", release_date="1998-11", year=1998)},
        )

        artist = make_aggregator(spotify, small_config, logger, ["q1"]).fetch_all()[0]

        assert (artist.first_album_name, artist.first_album_date, artist.first_album_year) == ("Debut", "1998-11", 1998)

    def test_enrichment_failure_degrades_to_unknown(self, small_config, logger):
        spotify = FakeSpotify(
            {"q1": [upstream("a1", "Foo"), upstream("a2", "Bar")]},
            albums={
                "a1": UpstreamError("albums down", status=500),
                "a2": EarliestAlbum(name="Ok", release_date="2001", year=2001),
            },
        )

        artists = make_aggregator(spotify, small_config, logger, ["q1"]).fetch_all()

        assert (artists[0].first_album_name, artists[0].first_album_year) == ("", 0)
        assert artists[1].first_album_year == 2001
        assert spotify.album_lookups == ["a1", "a2"]
