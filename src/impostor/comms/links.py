"""Shareable join links that carry a room code as a query parameter."""

from __future__ import annotations

from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

JOIN_PARAM = "join"


def join_link(base_url: str, room_code: str) -> str:
    """Return *base_url* with ``?join=<CODE>`` set, keeping other params."""
    parts = urlsplit(base_url)
    query = parse_qs(parts.query, keep_blank_values=True)
    query[JOIN_PARAM] = [room_code.upper()]
    return urlunsplit(parts._replace(query=urlencode(query, doseq=True)))


def resolve_join_link(url: str) -> str | None:
    """Return the upper-cased room code carried by *url*, or None."""
    values = parse_qs(urlsplit(url).query).get(JOIN_PARAM)
    if not values or not values[0].strip():
        return None
    return values[0].strip().upper()
