"""
Centralised constants for the AI debug exporter.

All limits, markers and default values live here so they can be imported
by any module without circular dependencies.
"""

# ── Version ──────────────────────────────────────────────────────
APP_VERSION = "1.0.0"

# ── Default settings ─────────────────────────────────────────────
DEFAULT_LOG_DIR = "log/ai-debug"
DEFAULT_SNIPPET_LINES = 10
DEFAULT_CONFIG_SECTION = "ai_debug"
ENV_PREFIX = "AI_DEBUG_"

# ── Sink ─────────────────────────────────────────────────────────
LATEST_FILENAME = "latest.json"
FILENAME_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S-%f"
FILENAME_HASH_LENGTH = 8
JSON_INDENT = 4

# ── Redaction ────────────────────────────────────────────────────
REDACTED_VALUE = "[REDACTED]"
ELLIPSIS = "..."
MAX_STRING_LENGTH = 500
MAX_COLLECTION_ITEMS = 50
MAX_SANITIZE_DEPTH = 10

# Substrings matched against the lowercased key
SENSITIVE_KEYS = (
    "password",
    "passwd",
    "pwd",
    "token",
    "secret",
    "apikey",
    "api_key",
    "authorization",
    "cookie",
    "session",
    "jwt",
    "bearer",
    "private_key",
    "client_secret",
)

# ── Stack traces ─────────────────────────────────────────────────
MAX_ARG_STRING_LENGTH = 100

# ── Event types ──────────────────────────────────────────────────
STRING_MESSAGE_TYPE = "StringMessage"

# ── Diagnostics logging ──────────────────────────────────────────
LOG_MAX_BYTES = 10 * 1024 * 1024  # 10 MB per log file
LOG_BACKUP_COUNT = 5
