"""
OXM - Constants

Shared constants for the event registry, configuration and logging.
"""

# =============================================================================
# Registry
# =============================================================================

# Bumped whenever identifiers are added. Identifiers are never removed.
REGISTRY_VERSION = "1.0.0"

MANIFEST_FILE = "events.manifest.json"

# Prefix conventions of the paired lifecycle identifiers
PRE_PREFIX = "pre"
POST_PREFIX = "post"

# =============================================================================
# Event Bus
# =============================================================================

DEFAULT_PRIORITY = 0

# =============================================================================
# Environment / Configuration
# =============================================================================

ENV_LOG_LEVEL = "OXM_LOG_LEVEL"
ENV_LOG_FILE = "OXM_LOG_FILE"
ENV_PARALLEL_DISPATCH = "OXM_PARALLEL_DISPATCH"

DEFAULT_LOG_LEVEL = "INFO"

VALID_LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off", "")

# =============================================================================
# Logging
# =============================================================================

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - <level>{message}</level>"
)

VERBOSE_LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]: <20}</cyan> | "
    "{file}:{line} - <level>{message}</level>"
)

LOG_ROTATION = "10 MB"
LOG_RETENTION = 5
