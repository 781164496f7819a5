"""
Configuration for Contract Watch
================================

All settings in one place. Values come from the environment (optionally
loaded from a .env file at the project root) and are carried around in an
explicit Config object. Telegram credentials are secrets and stay out of
Config; TelegramAlerts.from_env() reads them when the sink is built.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple
import os
import re

from dotenv import load_dotenv

_project_root = Path(__file__).parent.parent
_env_path = _project_root / ".env"


# =============================================================================
# Fixed Constants
# =============================================================================

# Aave pool contract on Plasma and the weETH reserve it lists
DEFAULT_CONTRACT_ADDRESS = "0xAf1a7a488c8348b41d5860C04162af7d3D38A996"
DEFAULT_WATCH_ADDRESS = "0xA3D68b74bF0528fdD07263c60d6488749044914b"

DEFAULT_EXPLORER_URL = "https://plasmascan.to"
DEFAULT_RPC_URL = "https://rpc.plasma.to"
DEFAULT_DATA_FILE = "previous_data.json"

# Only error alerts more than 2 hours apart are sent
DEFAULT_ERROR_COOLDOWN_SEC = 2 * 60 * 60

# Amount heuristic
DEFAULT_LARGE_AMOUNT_THRESHOLD = 1000
MAX_MATCHES_PER_PATTERN = 3

# Number of leading content bytes hashed into the page fingerprint
FINGERPRINT_PREFIX_BYTES = 2000

USER_AGENT = "Mozilla/5.0 (compatible; ContractWatch/1.0)"

# Explorer statuses meaning "still indexing, ask again later"
DEFAULT_NOT_READY_STATUSES: Tuple[int, ...] = (202, 425)

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


class MonitorMode(Enum):
    """What the monitor observes."""
    PAGE = "page"      # Block explorer page fingerprint
    SUPPLY = "supply"  # totalSupply() through RPC


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class Config:
    """All configuration settings."""

    # -------------------------------------------------------------------------
    # Target
    # -------------------------------------------------------------------------
    mode: MonitorMode = MonitorMode.PAGE
    contract_address: str = DEFAULT_CONTRACT_ADDRESS

    # Secondary address looked for in explorer content (e.g. a reserve token)
    watch_address: Optional[str] = DEFAULT_WATCH_ADDRESS

    # -------------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------------
    explorer_url: str = DEFAULT_EXPLORER_URL
    rpc_url: str = DEFAULT_RPC_URL
    http_timeout_sec: float = 30.0
    not_ready_statuses: Tuple[int, ...] = DEFAULT_NOT_READY_STATUSES

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------
    data_file: Path = field(default_factory=lambda: Path(DEFAULT_DATA_FILE))

    # File the scheduler reads step outputs from (GitHub Actions: $GITHUB_OUTPUT)
    output_file: Optional[Path] = None

    # -------------------------------------------------------------------------
    # Alert Policy
    # -------------------------------------------------------------------------
    error_cooldown_sec: int = DEFAULT_ERROR_COOLDOWN_SEC
    large_amount_threshold: int = DEFAULT_LARGE_AMOUNT_THRESHOLD
    max_matches_per_pattern: int = MAX_MATCHES_PER_PATTERN
    fingerprint_prefix_bytes: int = FINGERPRINT_PREFIX_BYTES

    # Log alerts instead of forwarding them to Telegram
    dry_run: bool = False

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    @property
    def page_url(self) -> str:
        """Explorer page for the monitored contract."""
        return f"{self.explorer_url.rstrip('/')}/address/{self.contract_address}"

    # -------------------------------------------------------------------------
    # Helper Methods
    # -------------------------------------------------------------------------

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "Config":
        """
        Build a Config from environment variables.

        Args:
            load_env_file: Load the project's .env file first (if it exists)

        Returns:
            Config instance (not yet validated)
        """
        if load_env_file and _env_path.exists():
            load_dotenv(_env_path)

        env = os.environ
        output_file = env.get("GITHUB_OUTPUT")
        log_file = env.get("LOG_FILE")

        return cls(
            mode=MonitorMode(env.get("MONITOR_MODE", MonitorMode.PAGE.value).strip().lower()),
            contract_address=env.get("CONTRACT_ADDRESS", DEFAULT_CONTRACT_ADDRESS).strip(),
            watch_address=(env.get("WATCH_ADDRESS", DEFAULT_WATCH_ADDRESS).strip() or None),
            explorer_url=env.get("EXPLORER_URL", DEFAULT_EXPLORER_URL).strip(),
            rpc_url=env.get("RPC_URL", DEFAULT_RPC_URL).strip(),
            http_timeout_sec=float(env.get("HTTP_TIMEOUT", "30")),
            data_file=Path(env.get("DATA_FILE", DEFAULT_DATA_FILE)),
            output_file=Path(output_file) if output_file else None,
            error_cooldown_sec=int(env.get("ERROR_ALERT_COOLDOWN_SEC", str(DEFAULT_ERROR_COOLDOWN_SEC))),
            large_amount_threshold=int(env.get("LARGE_AMOUNT_THRESHOLD", str(DEFAULT_LARGE_AMOUNT_THRESHOLD))),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            log_file=Path(log_file) if log_file else None,
        )

    def validate(self):
        """
        Check settings that would otherwise fail deep inside a run.

        Raises:
            ValueError: On the first invalid setting found
        """
        if not isinstance(self.mode, MonitorMode):
            raise ValueError(f"Unknown monitor mode: {self.mode!r}")
        if not _ADDRESS_RE.match(self.contract_address):
            raise ValueError(f"CONTRACT_ADDRESS is not a 0x address: {self.contract_address!r}")
        if self.watch_address and not _ADDRESS_RE.match(self.watch_address):
            raise ValueError(f"WATCH_ADDRESS is not a 0x address: {self.watch_address!r}")
        if self.error_cooldown_sec <= 0:
            raise ValueError("ERROR_ALERT_COOLDOWN_SEC must be positive")
        if self.large_amount_threshold < 0:
            raise ValueError("LARGE_AMOUNT_THRESHOLD must not be negative")
        if self.mode is MonitorMode.SUPPLY and not self.rpc_url:
            raise ValueError("RPC_URL is required in supply mode")
