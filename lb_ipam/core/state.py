# lb_ipam/core/state.py
"""
Allocation State

Bidirectional mapping between service keys and assigned addresses.
The two dicts are kept as exact inverses of each other. The object carries
no lock of its own: the Allocator that owns it serializes every access.
"""

from typing import Dict, Optional

from .iterator import IPAddress


class AllocationState:
    """Service key <-> address bijection"""

    def __init__(self):
        self._ip_to_svc: Dict[IPAddress, str] = {}
        self._svc_to_ip: Dict[str, IPAddress] = {}

    def owner(self, ip: IPAddress) -> Optional[str]:
        """Key of the service that owns ip, if any"""
        return self._ip_to_svc.get(ip)

    def address_of(self, key: str) -> Optional[IPAddress]:
        return self._svc_to_ip.get(key)

    def record(self, key: str, ip: IPAddress) -> None:
        """
        Bind key to ip.

        The caller has already checked that ip is free or owned by key.
        A previous address of key is dropped so one key never holds two.
        """
        previous = self._svc_to_ip.get(key)
        if previous is not None and previous != ip:
            del self._ip_to_svc[previous]
        self._ip_to_svc[ip] = key
        self._svc_to_ip[key] = ip

    def forget(self, key: str) -> Optional[IPAddress]:
        """Drop key's binding. Returns the released address, if there was one."""
        ip = self._svc_to_ip.pop(key, None)
        if ip is not None:
            self._ip_to_svc.pop(ip, None)
        return ip

    def snapshot(self) -> Dict[str, str]:
        """Copy of key -> address (string form)"""
        return {key: str(ip) for key, ip in self._svc_to_ip.items()}

    def is_consistent(self) -> bool:
        """True if both mappings are exact inverses"""
        if len(self._ip_to_svc) != len(self._svc_to_ip):
            return False
        return all(self._ip_to_svc.get(ip) == key for key, ip in self._svc_to_ip.items())

    def __len__(self) -> int:
        return len(self._svc_to_ip)

    def __contains__(self, key: object) -> bool:
        return key in self._svc_to_ip
