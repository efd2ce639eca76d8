"""
Log codes for consumer and spool operations.
"""

CONSUMER = "consumer"

# Batch consumer lifecycle
CONSUMER_STARTED = f"{CONSUMER}.started"
CONSUMER_STOPPING = f"{CONSUMER}.stopping"
CONSUMER_STOPPED = f"{CONSUMER}.stopped"
CONSUMER_FLUSH_FAILED = f"{CONSUMER}.flush_failed"
CONSUMER_BATCH_DROPPED = f"{CONSUMER}.batch_dropped"

# Transmission
TRANSPORT = "transport"
TRANSPORT_SEND = f"{TRANSPORT}.send"
TRANSPORT_ATTEMPT_FAILED = f"{TRANSPORT}.attempt_failed"
TRANSPORT_EXHAUSTED = f"{TRANSPORT}.exhausted"

# Spool
SPOOL = "spool"
SPOOL_WRITE_FAILED = f"{SPOOL}.write_failed"
SPOOL_ROTATED = f"{SPOOL}.rotated"
SPOOL_LINE_COUNT_FAILED = f"{SPOOL}.line_count_failed"
SPOOL_UPLOAD = f"{SPOOL}.upload"
SPOOL_UPLOADED = f"{SPOOL}.uploaded"
SPOOL_UPLOAD_FAILED = f"{SPOOL}.upload_failed"
SPOOL_REMOVE_FAILED = f"{SPOOL}.remove_failed"
SPOOL_SCAN_FAILED = f"{SPOOL}.scan_failed"
