"""
Log codes for configuration-related operations.
"""

CONFIG = "config"

BATCH = f"{CONFIG}.batch"
BATCH_RESOLVED = f"{BATCH}.resolved"
BATCH_VALUE_NORMALIZED = f"{BATCH}.value_normalized"
BATCH_CONFIG_MISSING_SECTION = f"{BATCH}.missing_section"
BATCH_VALUE_INVALID = f"{BATCH}.value_invalid"
