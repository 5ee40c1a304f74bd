"""Constants for the audit logging system.

Magic numbers shared by the builder, the writer, the history queries and the
retention sweep live here so they cannot drift apart.
"""

# History query limits
DEFAULT_RECORD_HISTORY_LIMIT = 50
"""Default number of entries returned for a single record's history."""

DEFAULT_ACTOR_HISTORY_LIMIT = 100
"""Default number of entries returned for an actor's activity."""

DEFAULT_PAGE_SIZE = 100
"""Default number of entries returned for time range queries."""

MAX_PAGE_SIZE = 1000
"""Hard cap on the number of entries a single history query may return."""

# Retention
DEFAULT_RETENTION_DAYS = 365
"""Retention window applied when a policy is created without one (1 year)."""

MAX_RETENTION_DAYS = 2555
"""Maximum retention period for audit logs (approximately 7 years)."""

# Worker settings
AUDIT_WRITE_TIMEOUT_SECONDS = 30
"""Maximum time a single audit write may take before it is abandoned."""

# Field length constraints
MAX_TABLE_NAME_LENGTH = 100
MAX_REASON_LENGTH = 2000
"""Maximum length of the reason field (leaves room for failure notes)."""

MAX_USER_AGENT_LENGTH = 1000
"""Maximum length of user agent string (some browsers send very long strings)."""

FAILURE_NOTE_PREFIX = "operation failed"
"""Prefix of the note appended to the reason when the audited operation raised."""
