"""
Peer data model for the TrinityChain Node Monitor.

The node reports peers either as "host:port" strings or as objects with
separate host/port (or address) fields depending on the build. This module
folds both into a single structure.
"""
from dataclasses import dataclass
from typing import Dict, Any, List
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeerInfo:
    """A peer the observed node is connected to."""

    host: str
    port: int

    @property
    def address(self) -> str:
        """Get formatted address string."""
        if not self.port:
            return self.host
        return f"{self.host}:{self.port}"

    @classmethod
    def from_api_data(cls, peer: Any) -> 'PeerInfo':
        """Create PeerInfo from an entry of /api/network/peers.

        Args:
            peer: Either an address string or a mapping with host/port/address keys

        Returns:
            Normalized PeerInfo instance
        """
        if isinstance(peer, str):
            return cls._from_address(peer)

        if not isinstance(peer, dict):
            return cls(host="unknown", port=0)

        host = peer.get("host", peer.get("ip"))
        if host is None and isinstance(peer.get("address"), str):
            return cls._from_address(peer["address"])

        port = peer.get("port", 0)
        try:
            port = int(port)
        except (TypeError, ValueError):
            logger.debug(f"Invalid peer port: {port!r}")
            port = 0

        return cls(host=str(host) if host else "unknown", port=max(port, 0))

    @classmethod
    def _from_address(cls, address: str) -> 'PeerInfo':
        address = address.strip()
        if ":" in address:
            host, port_str = address.rsplit(":", 1)
            if port_str.isdigit():
                return cls(host=host, port=int(port_str))
        return cls(host=address or "unknown", port=0)

    def to_api_response(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "host": self.host,
            "port": self.port
        }


class PeerInfoCollection:
    """Collection of PeerInfo objects keyed by address."""

    def __init__(self):
        self.peers: Dict[str, PeerInfo] = {}

    def add_peer(self, peer: PeerInfo):
        """Add or update a peer in the collection."""
        self.peers[peer.address] = peer

    @property
    def total_count(self) -> int:
        return len(self.peers)

    def as_list(self) -> List[PeerInfo]:
        return list(self.peers.values())

    def to_api_response(self) -> Dict[str, Any]:
        """Convert collection to API response format."""
        return {
            "peerCount": self.total_count,
            "peers": [peer.to_api_response() for peer in self.peers.values()]
        }
