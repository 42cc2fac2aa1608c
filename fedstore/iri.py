# fedstore/iri.py
"""
Identifier (IRI) handling.

Every stored document is keyed by the canonical form of its IRI:
- scheme and host lower-cased
- default port dropped
- empty path becomes "/"

Query and fragment are kept verbatim, so collection page IRIs
(".../outbox?offset=20&limit=20") are distinct from the collection.
"""

from typing import Dict, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .errors import InvalidDocument

DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize(iri: str) -> str:
    """
    Return the canonical form of an IRI.

    Raises InvalidDocument if the value is not an absolute IRI.
    """
    if not isinstance(iri, str) or not iri.strip():
        raise InvalidDocument(f"Not an identifier: {iri!r}")
    parts = urlsplit(iri.strip())
    if not parts.scheme or not parts.hostname:
        raise InvalidDocument(f"Identifier must be absolute: {iri!r}", iri)

    scheme = parts.scheme.lower()
    try:
        port = parts.port
    except ValueError as e:
        raise InvalidDocument(f"Bad port in identifier {iri!r}: {e}", iri) from e

    host = parts.hostname
    if ":" in host:
        host = f"[{host}]"
    netloc = host
    if port is not None and port != DEFAULT_PORTS.get(scheme):
        netloc = f"{host}:{port}"
    if parts.username:
        userinfo = parts.username
        if parts.password:
            userinfo += f":{parts.password}"
        netloc = f"{userinfo}@{netloc}"

    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, parts.fragment))


def host_of(iri: str) -> str:
    """Host (with non-default port) of an IRI, lower-cased."""
    netloc = urlsplit(normalize(iri)).netloc
    return netloc.rsplit("@", 1)[-1]


def split_query(iri: str) -> Tuple[str, Dict[str, str]]:
    """Split an IRI into (canonical IRI without query, query parameters)."""
    parts = urlsplit(normalize(iri))
    base = urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))
    return base, dict(parse_qsl(parts.query))


def with_query(iri: str, **params) -> str:
    """Return the IRI with its query replaced by params."""
    parts = urlsplit(normalize(iri))
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, ""))
