# groupie_tracker/catalog/filters.py

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, List, Mapping, Optional

from ..spotify.models import Artist

GROUP_SEPARATORS = [' & ', ' and ', ' feat', ' ft.', ' featuring', ' vs ', ' x ', ' + ']
GROUP_WORDS = [' band', ' group', ' collective', ' ensemble', ' orchestra', ' quartet', ' trio']

# Approximate origin guesses from name and genre keywords
LOCATION_KEYWORDS = {
    'paris': ['french', 'france', 'français', 'paris'],
    'lyon': ['french', 'france', 'français'],
    'marseille': ['french', 'france', 'français'],
    'london': ['british', 'uk', 'england', 'english'],
    'manchester': ['british', 'uk', 'england'],
    'new york': ['american', 'usa', 'us', 'hip-hop', 'rap'],
    'los angeles': ['american', 'usa', 'us', 'california'],
    'berlin': ['german', 'germany', 'deutschland', 'electronic'],
    'madrid': ['spanish', 'spain', 'español'],
    'barcelona': ['spanish', 'spain', 'catalan'],
    'rome': ['italian', 'italy', 'italia'],
    'milan': ['italian', 'italy'],
    'amsterdam': ['dutch', 'netherlands', 'holland'],
    'tokyo': ['japanese', 'japan', 'j-pop'],
    'seoul': ['korean', 'korea', 'k-pop'],
}

POPULAR_LOCATIONS = [
    "Paris", "Lyon", "Marseille", "London", "Manchester", "New York", "Los Angeles",
    "Berlin", "Madrid", "Barcelona", "Rome", "Milan", "Amsterdam", "Tokyo", "Seoul",
]

MEMBER_COUNT_BUCKETS = [1, 2, 3, 4, 5]  # 5 means "5 or more"


@dataclass
class FilterOptions:
    query: str = ""
    min_year: int = 0
    max_year: int = 0
    member_counts: List[int] = field(default_factory=list)
    locations: List[str] = field(default_factory=list)
    first_album_min: str = ""
    first_album_max: str = ""

    @property
    def is_active(self) -> bool:
        return bool(self.query or self.min_year or self.max_year or self.member_counts
                    or self.locations or self.first_album_min or self.first_album_max)


def normalize_artist_name(name: str) -> str:
    """Normalize artist name for comparison"""
    if not name:
        return ""
    name = name.lower()
    name = re.sub(r'\([^)]*\)', '', name)
    name = re.sub(r'\[[^]]*\]', '', name)
    name = re.sub(r'[^\w\s\-]', '', name)
    name = re.sub(r'\s+', ' ', name)
    return name.strip()


def _get_list(args: Mapping, key: str) -> List[str]:
    if hasattr(args, 'getlist'):
        values = args.getlist(key) + args.getlist(key + '[]')
    else:
        values = []
        for k in (key, key + '[]'):
            value = args.get(k)
            if isinstance(value, (list, tuple)):
                values.extend(value)
            elif value is not None:
                values.append(value)
    return [v.strip() for v in values if v and v.strip()]


def _get_int(args: Mapping, key: str) -> int:
    value = (args.get(key) or '').strip()
    try:
        return int(value)
    except ValueError:
        return 0


def parse_filter_options(args: Mapping) -> FilterOptions:
    """Build FilterOptions from query-string arguments; non-numeric values are ignored"""
    member_counts = []
    for value in _get_list(args, 'memberCount'):
        try:
            member_counts.append(int(value))
        except ValueError:
            continue

    return FilterOptions(
        query=(args.get('q') or '').strip(),
        min_year=_get_int(args, 'minYear'),
        max_year=_get_int(args, 'maxYear'),
        member_counts=member_counts,
        locations=_get_list(args, 'location'),
        first_album_min=(args.get('firstAlbumMin') or '').strip(),
        first_album_max=(args.get('firstAlbumMax') or '').strip(),
    )


def parse_date(value: str) -> Optional[date]:
    """Parse a user-supplied date: DD-MM-YYYY, YYYY-MM-DD or YYYY"""
    for fmt in ('%d-%m-%Y', '%Y-%m-%d', '%Y'):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def parse_release_date(value: str) -> Optional[date]:
    """Parse a Spotify release date: YYYY, YYYY-MM or YYYY-MM-DD"""
    if not value:
        return None
    try:
        if len(value) == 4:
            return datetime.strptime(value, '%Y').date()
        if len(value) == 7:
            return datetime.strptime(value, '%Y-%m').date()
        if len(value) >= 10:
            return datetime.strptime(value[:10], '%Y-%m-%d').date()
    except ValueError:
        return None
    return None


def estimate_member_count(name: str) -> int:
    """Guess group (2) or solo (1) from the artist name"""
    name_lower = name.lower()
    if any(sep in name_lower for sep in GROUP_SEPARATORS):
        return 2
    if name_lower.startswith('the ') and len(name_lower) > 4:
        return 2
    if any(word in name_lower for word in GROUP_WORDS):
        return 2
    return 1


def matches_member_count(artist: Artist, member_counts: Iterable[int]) -> bool:
    count = estimate_member_count(artist.name)
    for wanted in member_counts:
        if wanted >= 5 and count >= 5:
            return True
        if count == wanted:
            return True
    return False


def matches_location(artist: Artist, locations: Iterable[str]) -> bool:
    name_lower = artist.name.lower()
    genres = [g.lower() for g in artist.genres]
    for location in locations:
        location_lower = location.lower()
        if location_lower in name_lower:
            return True
        for keyword in LOCATION_KEYWORDS.get(location_lower, []):
            if keyword in name_lower or any(keyword in genre for genre in genres):
                return True
    return False


def matches_query(artist: Artist, query: str) -> bool:
    """Case-insensitive substring match on the name and the genres"""
    query = query.strip().lower()
    if not query:
        return True
    if query in artist.name.lower():
        return True
    return any(query in genre.lower() for genre in artist.genres)


def _matches_first_album(artist: Artist, options: FilterOptions) -> bool:
    album_date = parse_release_date(artist.first_album_date)
    if album_date is None:
        return False
    if options.first_album_min:
        min_date = parse_date(options.first_album_min)
        if min_date and album_date < min_date:
            return False
    if options.first_album_max:
        max_date = parse_date(options.first_album_max)
        if max_date and album_date > max_date:
            return False
    return True


def filter_artists(artists: Iterable[Artist], options: FilterOptions) -> List[Artist]:
    """Apply every active criterion; artists must match all of them"""
    filtered = []
    for artist in artists:
        year = artist.first_album_year
        # Unknown years are never excluded
        if options.min_year and year and year < options.min_year:
            continue
        if options.max_year and year and year > options.max_year:
            continue
        if options.member_counts and not matches_member_count(artist, options.member_counts):
            continue
        if (options.first_album_min or options.first_album_max) and not _matches_first_album(artist, options):
            continue
        if options.locations and not matches_location(artist, options.locations):
            continue
        if options.query and not matches_query(artist, options.query):
            continue
        filtered.append(artist)
    return filtered


def unique_genres(artists: Iterable[Artist]) -> List[str]:
    return sorted({genre for artist in artists for genre in artist.genres})


def popular_locations() -> List[str]:
    return list(POPULAR_LOCATIONS)
