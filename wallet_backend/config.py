# wallet_backend/config.py

import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from wallet_backend.utils.logger import get_logger

logger = get_logger(__name__)

# Load .env from the project root
script_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(script_dir)
dotenv_path = os.path.join(project_root, '.env')
load_dotenv(dotenv_path=dotenv_path)

# --- Solana Node Connection ---
SOLANA_NODE_RPC_ENDPOINT = os.getenv("SOLANA_NODE_RPC_ENDPOINT", "https://api.mainnet-beta.solana.com")
SOLANA_COMMITMENT = os.getenv("SOLANA_COMMITMENT", "confirmed")
RPC_TIMEOUT_SECONDS = 30

# --- Submission ---
SEND_MAX_RETRIES = 3
SEND_SKIP_PREFLIGHT = False

# --- Confirmation Polling ---
CONFIRMATION_WATCH_ENABLED = True
CONFIRMATION_POLL_INTERVAL_SECONDS = 2.0
CONFIRMATION_TIMEOUT_SECONDS = 300.0

# --- Balances ---
TOKEN_ACCOUNTS_TIMEOUT_SECONDS = 45.0

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
AUDIT_LOG_TO_FILE = False
AUDIT_LOG_PATH = "transfer_audit.log"

VALID_COMMITMENTS = ("processed", "confirmed", "finalized")

OPTIONAL_DEFAULTS: Dict[str, Any] = {
    "SOLANA_COMMITMENT": SOLANA_COMMITMENT,
    "RPC_TIMEOUT_SECONDS": RPC_TIMEOUT_SECONDS,
    "SEND_MAX_RETRIES": SEND_MAX_RETRIES,
    "SEND_SKIP_PREFLIGHT": SEND_SKIP_PREFLIGHT,
    "CONFIRMATION_WATCH_ENABLED": CONFIRMATION_WATCH_ENABLED,
    "CONFIRMATION_POLL_INTERVAL_SECONDS": CONFIRMATION_POLL_INTERVAL_SECONDS,
    "CONFIRMATION_TIMEOUT_SECONDS": CONFIRMATION_TIMEOUT_SECONDS,
    "TOKEN_ACCOUNTS_TIMEOUT_SECONDS": TOKEN_ACCOUNTS_TIMEOUT_SECONDS,
    "LOG_LEVEL": LOG_LEVEL,
    "AUDIT_LOG_TO_FILE": AUDIT_LOG_TO_FILE,
    "AUDIT_LOG_PATH": AUDIT_LOG_PATH,
}


def _coerce(raw: Any, default: Any) -> Any:
    # bool("false") is True, so booleans from the environment need a lookup
    if isinstance(default, bool) and isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"not a boolean: {raw!r}")
    return type(default)(raw)


def load_config(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Load and validate the backend configuration from overrides, then the environment."""
    overrides = overrides or {}
    config: Dict[str, Any] = {}

    # 1) Required core values
    endpoint = overrides.get("SOLANA_NODE_RPC_ENDPOINT") or os.getenv("SOLANA_NODE_RPC_ENDPOINT") \
        or SOLANA_NODE_RPC_ENDPOINT
    if not endpoint:
        raise ValueError("Missing required config var: SOLANA_NODE_RPC_ENDPOINT")
    config["SOLANA_NODE_RPC_ENDPOINT"] = endpoint

    # 2) All other optional settings
    for var, default in OPTIONAL_DEFAULTS.items():
        raw = overrides.get(var, os.getenv(var))
        if raw is None:
            config[var] = default
        else:
            try:
                config[var] = _coerce(raw, default)
            except (TypeError, ValueError):
                logger.warning(f"Config warning: invalid type for {var}, using default {default}")
                config[var] = default

    if config["SOLANA_COMMITMENT"] not in VALID_COMMITMENTS:
        logger.warning(
            f"Config warning: unknown commitment '{config['SOLANA_COMMITMENT']}', using 'confirmed'"
        )
        config["SOLANA_COMMITMENT"] = "confirmed"

    for var in ("CONFIRMATION_POLL_INTERVAL_SECONDS", "CONFIRMATION_TIMEOUT_SECONDS",
                "TOKEN_ACCOUNTS_TIMEOUT_SECONDS", "RPC_TIMEOUT_SECONDS"):
        if config[var] <= 0:
            logger.warning(f"Config warning: {var} must be positive, using default {OPTIONAL_DEFAULTS[var]}")
            config[var] = OPTIONAL_DEFAULTS[var]

    logger.info("Configuration loaded successfully.")
    return config
