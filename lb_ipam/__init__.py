"""
Load-Balancer IPAM Controller

Assigns externally-routable IPs to load-balanced services from configured
address pools and keeps those assignments consistent as service specs
and pool configuration change.
"""

__version__ = "1.0.0"
