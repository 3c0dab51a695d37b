# groupie_tracker/web/app.py

import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, jsonify, redirect, render_template, request, url_for
from werkzeug.exceptions import HTTPException

from ..catalog.filters import (
    MEMBER_COUNT_BUCKETS,
    filter_artists,
    parse_filter_options,
    popular_locations,
    unique_genres,
)
from ..catalog.service import ArtistCatalog
from ..spotify.exceptions import NotFoundError
from ..spotify.models import Artist
from ..utils.errors import GroupieTrackerError

MAX_QUERY_LENGTH = 100
ARTIST_ID_PATTERN = re.compile(r"[0-9]+")

ERROR_TITLES = {
    400: "Bad request",
    404: "Page not found",
    405: "Method not allowed",
    500: "Server error",
}


def format_duration(ms: int) -> str:
    """Milliseconds as m:ss"""
    if not ms or ms <= 0:
        return "0:00"
    seconds = ms // 1000
    return f"{seconds // 60}:{seconds % 60:02d}"


def format_number(n: int) -> str:
    """Compact count: 950, 12.3K, 4.5M"""
    if n < 1000:
        return str(n)
    if n < 1000000:
        return f"{n / 1000:.1f}K"
    return f"{n / 1000000:.1f}M"


def create_app(catalog: ArtistCatalog, config: Dict[str, Any], logger: logging.Logger) -> Flask:
    """
    Build the Flask application around an artist catalog

    Args:
        catalog: Shared catalog instance (owns the artist cache)
        config: Full application configuration
        logger: Logger instance

    Returns:
        Flask: Configured application
    """
    app = Flask(__name__)
    app.config['JSON_AS_ASCII'] = False
    app.jinja_env.filters['format_duration'] = format_duration
    app.jinja_env.filters['format_number'] = format_number
    featured_variants = config.get('catalog', {}).get('featured_artist', [])

    def render_error(status: int, message: str):
        return render_template(
            "error.html",
            title=ERROR_TITLES.get(status, "Error"),
            status_code=status,
            message=message,
        ), status

    def load_artists() -> Tuple[List[Artist], Optional[str]]:
        """Cached artists, or an empty list plus a banner message when they cannot be fetched"""
        try:
            return catalog.list_artists(), None
        except GroupieTrackerError as e:
            logger.error(f"Could not load artists: {str(e)}")
            return [], "Artists could not be loaded from Spotify right now. Please try again later."

    def validate_query(query: str) -> Optional[str]:
        if len(query) > MAX_QUERY_LENGTH:
            return f"Invalid search query (1-{MAX_QUERY_LENGTH} characters)"
        return None

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        if request.path.startswith('/suggestions'):
            return jsonify({'error': e.description}), e.code
        return render_error(e.code, e.description)

    @app.errorhandler(NotFoundError)
    def handle_not_found(e: NotFoundError):
        logger.info(f"Not found: {str(e)}")
        return render_error(404, "Artist not found")

    @app.errorhandler(GroupieTrackerError)
    def handle_app_error(e: GroupieTrackerError):
        logger.error(f"Request failed: {str(e)}")
        return render_error(500, "The artist service is unavailable right now.")

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.critical(f"An unexpected error occurred: {str(e)}", exc_info=True)
        return render_error(500, "Internal server error")

    @app.route("/", methods=["GET"])
    def home():
        return render_template("home.html", title="Home", artist_count=catalog.cached_artist_count())

    @app.route("/artists", methods=["GET"])
    def artists():
        options = parse_filter_options(request.args)
        error = validate_query(options.query)
        if error:
            return render_error(400, error)

        all_artists, load_error = load_artists()
        return render_template(
            "artists.html",
            title="Artists",
            artists=filter_artists(all_artists, options),
            total=len(all_artists),
            filters=options,
            genres=unique_genres(all_artists),
            locations=popular_locations(),
            member_buckets=MEMBER_COUNT_BUCKETS,
            error=load_error,
        )

    @app.route("/artist/<artist_id>", methods=["GET"])
    def artist_detail(artist_id: str):
        if not ARTIST_ID_PATTERN.fullmatch(artist_id):
            return render_error(400, "Invalid artist ID")
        detail = catalog.get_artist_detail(int(artist_id))
        return render_template("artist_detail.html", title=detail.artist.name, detail=detail)

    @app.route("/search", methods=["GET"])
    def search():
        query = request.args.get('q', '').strip()
        if not query:
            return redirect(url_for('artists'), code=303)
        error = validate_query(query)
        if error:
            return render_error(400, error)

        try:
            results, load_error = catalog.search(query), None
        except GroupieTrackerError as e:
            logger.error(f"Search for '{query}' failed: {str(e)}")
            results, load_error = [], "Search is unavailable right now. Please try again later."

        return render_template(
            "artists.html",
            title=f"Search results for: {query}",
            artists=results,
            total=len(results),
            filters=parse_filter_options(request.args),
            genres=unique_genres(results),
            locations=popular_locations(),
            member_buckets=MEMBER_COUNT_BUCKETS,
            query=query,
            error=load_error,
        )

    @app.route("/suggestions", methods=["GET"])
    def suggestions():
        query = request.args.get('q', '').strip()
        if not query:
            return jsonify([])
        if len(query) > MAX_QUERY_LENGTH:
            return jsonify({'error': "Query too long"}), 400
        try:
            return jsonify(catalog.suggestions(query))
        except GroupieTrackerError as e:
            logger.warning(f"Suggestions unavailable: {str(e)}")
            return jsonify([])

    @app.route("/location/<path:location>", methods=["GET"])
    def location(location: str):
        location = location.strip()
        if not location or len(location) > MAX_QUERY_LENGTH:
            return render_error(400, "Invalid location")
        try:
            found, load_error = catalog.artists_for_location(location), None
        except GroupieTrackerError as e:
            logger.error(f"Location view for '{location}' failed: {str(e)}")
            found, load_error = [], "Artists could not be loaded from Spotify right now. Please try again later."
        return render_template(
            "location.html",
            title=f"Artists linked to {location}",
            location=location,
            artists=found,
            error=load_error,
        )

    @app.route("/map", methods=["GET"])
    def concert_map():
        # Spotify exposes no concert places or dates, so the map starts empty
        locations: List[Dict[str, Any]] = []
        return render_template(
            "map.html",
            title="Concert map",
            locations=locations,
            locations_json=json.dumps(locations, ensure_ascii=False),
        )

    @app.route("/featured", methods=["GET"])
    def featured():
        if not featured_variants:
            return redirect(url_for('artists'), code=303)
        try:
            local_id = catalog.resolve_featured_artist(featured_variants)
        except GroupieTrackerError as e:
            logger.warning(f"Featured artist lookup failed: {str(e)}")
            local_id = None
        if local_id is None:
            return redirect(url_for('artists'), code=303)
        return redirect(url_for('artist_detail', artist_id=local_id), code=303)

    return app
