"""Rules hash stamped into override table artifacts.

The hash MUST be computed identically by:
- table_builder / generate_tables.py (when writing artifacts)
- tables.load_table (when deciding whether a stored artifact is current)
"""
import hashlib
import json

from slotcore.logic.models import PayoutTier, Symbol
from slotcore.logic.rules import RULES_VERSION
from slotcore.validators import MAX_REELS, MIN_REELS


def get_config_hash() -> str:
    """
    Generate hash of the classification rule configuration.

    Returns 16-char hex hash. Layout parameters (packing factor, chunk size)
    are stored in the artifact itself and are not part of the hash.
    """
    config_snapshot = {
        "rules_version": RULES_VERSION,
        "symbols": {s.name: s.value for s in Symbol},
        "tiers": {t.name: t.value for t in PayoutTier},
        "reel_counts": [MIN_REELS, MAX_REELS],
    }
    canonical = json.dumps(config_snapshot, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()[:16]
