# lb_ipam/core/pools.py
"""
Address pools and the pool registry

The registry is supplied by configuration and only read by the allocator.
On reload it is replaced as a whole, never edited in place.
"""

import ipaddress
import logging
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .iterator import IPAddress

logger = logging.getLogger(__name__)


class AddressPool(BaseModel):
    """A named, ordered list of CIDR ranges"""
    name: str = Field(..., min_length=1, description="Pool name")
    cidrs: List[Union[ipaddress.IPv4Network, ipaddress.IPv6Network]] = Field(
        ..., min_length=1, description="CIDR ranges, searched in order"
    )

    model_config = {"frozen": True}

    @field_validator("cidrs", mode="before")
    @classmethod
    def parse_cidrs(cls, value):
        if isinstance(value, (str, ipaddress.IPv4Network, ipaddress.IPv6Network)):
            value = [value]
        return [
            c if isinstance(c, (ipaddress.IPv4Network, ipaddress.IPv6Network))
            else ipaddress.ip_network(str(c).strip(), strict=False)
            for c in value
        ]

    def contains(self, ip: IPAddress) -> bool:
        return any(ip in cidr for cidr in self.cidrs)

    @property
    def size(self) -> int:
        return sum(cidr.num_addresses for cidr in self.cidrs)


class PoolRegistry:
    """
    Ordered collection of address pools

    Iteration follows registration order, which is also the order the
    allocator searches pools in when a service has no preference.
    """

    def __init__(self, pools: Optional[Iterable[AddressPool]] = None):
        self._pools: Dict[str, AddressPool] = {}
        for pool in pools or []:
            if pool.name in self._pools:
                raise ValueError(f"duplicate pool name {pool.name!r}")
            self._pools[pool.name] = pool

    @classmethod
    def from_mapping(cls, data: Mapping[str, Iterable[str]]) -> "PoolRegistry":
        """Build a registry from {"pool-name": ["10.0.0.0/30", ...]}"""
        registry = cls(AddressPool(name=name, cidrs=list(cidrs)) for name, cidrs in data.items())
        logger.debug(f"Loaded {len(registry)} address pool(s): {registry.names()}")
        return registry

    def get(self, name: str) -> Optional[AddressPool]:
        return self._pools.get(name)

    def names(self) -> List[str]:
        return list(self._pools)

    def pool_for(self, ip: IPAddress) -> Optional[str]:
        """Name of the first pool, in registry order, whose CIDRs contain ip"""
        for pool in self._pools.values():
            if pool.contains(ip):
                return pool.name
        return None

    def contains(self, ip: IPAddress) -> bool:
        """True if ip lies within any CIDR of any pool"""
        return self.pool_for(ip) is not None

    def to_dict(self) -> Dict[str, List[str]]:
        return {name: [str(c) for c in pool.cidrs] for name, pool in self._pools.items()}

    def __iter__(self) -> Iterator[AddressPool]:
        return iter(list(self._pools.values()))

    def __len__(self) -> int:
        return len(self._pools)

    def __contains__(self, name: object) -> bool:
        return name in self._pools

    def __repr__(self) -> str:
        return f"PoolRegistry({self.names()!r})"
