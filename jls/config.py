"""
Configuration module for JLS.

Centralizes configuration with environment variable support. The
verification core takes everything it needs as arguments; these values
only provide defaults for the CLI, the HTTP service and key parsing.
"""

import json
import os
from typing import Any, Dict

# ============================================================
# Environment Configuration
# ============================================================

ENV = os.getenv("JLS_ENV", "dev")  # dev|stage|prod

# Logging
LOG_LEVEL = os.getenv("JLS_LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("JLS_LOG_FORMAT", "json")  # json|text
LOG_FILE = os.getenv("JLS_LOG_FILE", "")

# Issuer public key (JWK)
PUBLIC_KEY_PATH = os.getenv("JLS_PUBLIC_KEY_PATH", "keys/license_public_key.json")

# Smallest RSA modulus accepted for license verification
MIN_RSA_KEY_BITS = int(os.getenv("JLS_MIN_RSA_KEY_BITS", "2048"))


# ============================================================
# Loaders
# ============================================================

def load_json(path: str) -> Any:
    """Load a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_public_key(path: str = None) -> Dict[str, Any]:
    """Load the issuer JWK from PUBLIC_KEY_PATH (or an explicit path)."""
    return load_json(path or PUBLIC_KEY_PATH)


# ============================================================
# Feature Flags
# ============================================================

def is_production() -> bool:
    """Check if running in production mode."""
    return ENV == "prod"


def is_debug() -> bool:
    """Check if debug mode is enabled."""
    return os.getenv("JLS_DEBUG", "").lower() in ("1", "true", "yes")


def use_json_logs() -> bool:
    return LOG_FORMAT.lower() != "text"
