"""
Hashing utilities for TxGraph snapshots.
"""

import json
import hashlib
from datetime import datetime, timezone
from typing import Dict, Any


def snapshot_id(network_data: Dict[str, Any]) -> str:
    """Short SHA-256 fingerprint of a NetworkData document."""
    json_string = json.dumps(network_data, sort_keys=True, default=str)
    hash_object = hashlib.sha256(json_string.encode("utf-8"))
    return hash_object.hexdigest()[:16]


def get_timestamp() -> str:
    """Get current UTC time as ISO format string."""
    return datetime.now(timezone.utc).isoformat()
