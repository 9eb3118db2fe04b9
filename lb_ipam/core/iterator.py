# lb_ipam/core/iterator.py
"""
Address iteration helpers

next_ip() has no notion of a range: stepping past the highest address of
the family wraps to the all-zero address. Callers bound a walk with the
CIDR containment check, which is what walk() does.
"""

from ipaddress import IPv4Address, IPv6Address, IPv4Network, IPv6Network, ip_address
from typing import Iterator, Optional, Union

IPAddress = Union[IPv4Address, IPv6Address]
IPNetwork = Union[IPv4Network, IPv6Network]


def next_ip(ip: IPAddress) -> IPAddress:
    """Return the numeric successor of ip, wrapping max -> 0"""
    width = ip.max_prefixlen
    return type(ip)((int(ip) + 1) % (1 << width))


def walk(network: IPNetwork) -> Iterator[IPAddress]:
    """
    Yield every address of network from its base address upward.

    Termination comes from the containment test. A network that spans the
    whole family (/0) is never left by next_ip, so the walk also stops
    once it comes back around to the base address.
    """
    base = network.network_address
    ip = base
    while ip in network:
        yield ip
        ip = next_ip(ip)
        if ip == base:
            return


def parse_ip(raw: Optional[str]) -> Optional[IPAddress]:
    """Parse an address string, returning None when absent or malformed"""
    if not raw:
        return None
    try:
        return ip_address(raw)
    except ValueError:
        return None
