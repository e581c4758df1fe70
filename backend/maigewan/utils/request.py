"""Request utility functions."""

from collections.abc import Callable

from fastapi import Request

UNKNOWN_IP = "unknown"

# (first octet, second octet) -> True when the address sits in a
# private, loopback, link-local, multicast or reserved block
RESERVED_IPV4_RANGES: tuple[tuple[str, Callable[[int, int], bool]], ...] = (
    ("10.0.0.0/8", lambda a, b: a == 10),
    ("172.16.0.0/12", lambda a, b: a == 172 and 16 <= b <= 31),
    ("192.168.0.0/16", lambda a, b: a == 192 and b == 168),
    ("127.0.0.0/8", lambda a, b: a == 127),
    ("0.0.0.0/8", lambda a, b: a == 0),
    ("169.254.0.0/16", lambda a, b: a == 169 and b == 254),
    ("224.0.0.0/4", lambda a, b: 224 <= a <= 239),
    ("240.0.0.0/4", lambda a, b: a >= 240),
)


def parse_ipv4_octets(candidate: str) -> tuple[int, int, int, int] | None:
    """Return the four octets of a dotted-quad literal, or None if malformed."""
    parts = candidate.split(".")
    if len(parts) != 4:
        return None

    octets = []
    for part in parts:
        # str.isdigit() accepts non-ASCII digits
        if not (1 <= len(part) <= 3 and part.isascii() and part.isdigit()):
            return None
        value = int(part)
        if value > 255:
            return None
        octets.append(value)

    return octets[0], octets[1], octets[2], octets[3]


def _reserved_block(first: int, second: int) -> str | None:
    for name, predicate in RESERVED_IPV4_RANGES:
        if predicate(first, second):
            return name
    return None


def reserved_range_for(candidate: str) -> str | None:
    """Name of the reserved block containing candidate, if any."""
    octets = parse_ipv4_octets(candidate)
    if octets is None:
        return None
    return _reserved_block(octets[0], octets[1])


def is_publicly_routable_ipv4(candidate: str) -> bool:
    """True for a well-formed IPv4 literal outside every reserved block."""
    octets = parse_ipv4_octets(candidate)
    if octets is None:
        return False
    return _reserved_block(octets[0], octets[1]) is None


def resolve_client_ip(header_lookup: Callable[[str], str | None]) -> str:
    """
    Best-effort originating client IP from proxy headers.

    Checks headers in order:
    1. X-Forwarded-For: first publicly routable IPv4 in the chain,
       otherwise the first entry as-is
    2. X-Real-IP
    3. CF-Connecting-IP

    Returns "unknown" when none of them is set.
    """
    forwarded = header_lookup("x-forwarded-for")
    if forwarded:
        hops = [hop.strip() for hop in forwarded.split(",")]
        for hop in hops:
            if is_publicly_routable_ipv4(hop):
                return hop
        # No public hop: trust the leftmost entry rather than nothing
        if hops[0]:
            return hops[0]

    real_ip = header_lookup("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    cf_ip = header_lookup("cf-connecting-ip")
    if cf_ip and cf_ip.strip():
        return cf_ip.strip()

    return UNKNOWN_IP


def get_client_ip(request: Request) -> str:
    """Extract the client IP for a FastAPI request from its proxy headers."""
    return resolve_client_ip(request.headers.get)


def proxy_headers(request: Request) -> dict[str, str | None]:
    """The raw IP-related headers, for debug logging."""
    return {
        name: request.headers.get(name)
        for name in ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")
    }
