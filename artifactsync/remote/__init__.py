"""Concrete clients for the node service and the remote destinations."""

from artifactsync.remote.archival import ArchivalDestination
from artifactsync.remote.car_stream import CarStream, CarStreamError
from artifactsync.remote.http import ApiError, LockedSession
from artifactsync.remote.kubo import KuboNodeService
from artifactsync.remote.pinning import PinningServiceDestination

__all__ = [
    "ArchivalDestination",
    "CarStream",
    "CarStreamError",
    "ApiError",
    "LockedSession",
    "KuboNodeService",
    "PinningServiceDestination",
]
