"""Host string normalization helpers shared by resolution and administration."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

# Never matchable via domain rules, so a tenant that happens to carry one of
# these as its domain cannot capture local development traffic.
LOCAL_DOMAINS = frozenset({"localhost", "127.0.0.1", "0.0.0.0"})

WILDCARD_PREFIX = "*."

_PORT_SUFFIX = re.compile(r":\d+$")
_SCHEME_PREFIX = re.compile(r"^https?://", re.IGNORECASE)


def normalize_domain(raw: str | None) -> str:
    """Return the canonical form of a host: trimmed, port-less, lowercase.

    Total and idempotent; empty or missing input yields "".
    """
    if not raw:
        return ""
    domain = raw.strip()
    domain = _PORT_SUFFIX.sub("", domain)
    return domain.strip().lower()


def is_local_domain(domain: str) -> bool:
    return domain in LOCAL_DOMAINS


def is_wildcard(pattern: str) -> bool:
    return pattern.startswith(WILDCARD_PREFIX)


def host_from_origin(origin: str | None) -> str | None:
    """Extract the normalized host of an Origin header value.

    Returns None for opaque origins ("null") and values without a network
    location.
    """
    if not origin:
        return None
    try:
        host = urlsplit(origin.strip()).hostname
    except ValueError:
        return None
    if not host:
        return None
    return normalize_domain(host)


def first_forwarded_host(value: str | None) -> str | None:
    """Pick the client-facing host from an X-Forwarded-Host header.

    Proxies chained in front of each other append hosts separated by commas;
    the first entry is the one the client asked for.
    """
    if not value:
        return None
    first = value.split(",", 1)[0]
    return normalize_domain(first) or None


def clean_domain_input(value: str | None) -> str | None:
    """Canonicalize an administrator-supplied domain.

    Accepts pasted URLs such as ``https://Wellness.Hyve.com/home`` and keeps
    wildcard patterns intact.
    """
    if not value:
        return None
    domain = _SCHEME_PREFIX.sub("", value.strip())
    domain = domain.split("/", 1)[0]
    return normalize_domain(domain) or None
