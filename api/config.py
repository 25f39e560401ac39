"""
Configuration management for the TrinityChain Node Monitor.
"""
import os

# Application Configuration
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
SERVICE_VERSION = "1.0.0"

# Node Configuration
NODE_URL = os.getenv("NODE_URL", "http://localhost:3000")
NODE_SESSION_COOKIE = os.getenv("NODE_SESSION_COOKIE", "")  # "name=value" forwarded with every request

# Polling Configuration (with environment variable overrides)
POLL_INTERVAL_MS = int(os.getenv("POLL_INTERVAL_MS", "3000"))  # Dashboard refresh interval
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "10.0"))  # Per-source request timeout in seconds
HISTORY_LIMIT = int(os.getenv("HISTORY_LIMIT", "50"))  # Blocks requested per history page
AUTO_START = os.getenv("AUTO_START", "true").lower() in ["true", "1", "yes"]

# Metrics Configuration
CHART_WINDOW = int(os.getenv("CHART_WINDOW", "20"))  # Blocks shown in difficulty/tx/reward charts
NETWORK_WINDOW = int(os.getenv("NETWORK_WINDOW", "10"))  # Blocks used for block time/rate series
MIN_BLOCK_TIME = 0.1  # Seconds; floor for rate denominators

# Diagnostic Log Configuration
LOG_CAPACITY = int(os.getenv("LOG_CAPACITY", "100"))

# API Configuration
CORS_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173"
]

# Environment Configuration
IS_PRODUCTION = os.getenv("PRODUCTION", "false").lower() in ["true", "1", "yes"]
DEBUG_MODE = os.getenv("DEBUG", "false").lower() in ["true", "1", "yes"] and not IS_PRODUCTION

# Upstream endpoints
STATS_PATH = "/api/blockchain/stats"
BLOCKS_PATH = "/api/blockchain/blocks"
NETWORK_INFO_PATH = "/api/network/info"
PEERS_PATH = "/api/network/peers"
API_STATS_PATH = "/stats"

# Default payloads for when a source has not answered yet
DEFAULT_STATS = {
    "height": 0,
    "difficulty": 0,
    "mempool_size": 0,
    "total_blocks": 0
}

DEFAULT_NETWORK_INFO = {
    "protocol_version": "1.0.0",
    "peer_count": 0
}

DEFAULT_API_STATS = {
    "total_requests": 0,
    "successful_requests": 0,
    "failed_requests": 0,
    "uptime_seconds": 0,
    "blocks_mined": 0,
    "is_mining": False
}
