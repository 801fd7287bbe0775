"""
Application constants.

Centralized constants for the application.
"""

# ========================================================================
# BLOCKCHAIN CONSTANTS
# ========================================================================

# Blockchain operation timeouts (in seconds)
BLOCKCHAIN_EXECUTOR_TIMEOUT = 35.0  # Timeout for run_in_executor operations (above RPC timeout)
BLOCKCHAIN_RPC_TIMEOUT = 30  # RPC provider HTTP timeout

# Retry/failover policy
RPC_ATTEMPTS_PER_ENDPOINT = 2  # First try + one retry after backoff
RPC_RETRY_BACKOFF = 1.0  # Seconds before retrying the same endpoint
RPC_EXECUTOR_WORKERS = 4  # Thread pool size for sync web3 calls

# Log scanning
DEFAULT_LOG_CHUNK = 8000  # Blocks per eth_getLogs query (lower if RPC limits)

# keccak256("Transfer(address,address,uint256)")
TRANSFER_EVENT_TOPIC = (
    "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
)

# Public Base RPCs used when BASE_RPC_URLS is not set
DEFAULT_BASE_RPC_URLS = "https://rpc.ankr.com/base,https://mainnet.base.org"

# ========================================================================
# PROGRESSION CONSTANTS
# ========================================================================

MAX_LEVEL_BY_RARITY = {
    "COMMON": 15,
    "UNCOMMON": 20,
    "RARE": 30,
    "EPIC": 40,
    "LEGENDARY": 50,
    "SPIRIT": 25,
}
UNKNOWN_RARITY_MAX_LEVEL = 1
DEFAULT_RARITY = "COMMON"

# expNeeded(level) = 100 + (level - 1) * 40
EXP_BASE_REQUIREMENT = 100
EXP_STEP_PER_LEVEL = 40

FEED_EXP_GAIN = 20  # +20 exp per feed
FEED_COOLDOWN_MS = 30 * 60 * 1000  # 30 minutes
