"""
OXM - Exception Hierarchy

All errors raised by the event registry, the event bus and the registry
manifest tooling derive from OXMError so callers can catch them in one place.
"""

from typing import Any, Dict, List, Optional


class OXMError(Exception):
    """Base error carrying a message and structured details."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for logs or API payloads."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# =============================================================================
# Event Errors
# =============================================================================

class EventError(OXMError):
    """Errors related to event names and listeners."""


class UnknownEventError(EventError):
    """Raised when a name does not belong to the event registry."""

    def __init__(self, event_name: Any, available: Optional[List[str]] = None):
        details: Dict[str, Any] = {"event_name": str(event_name)}
        if available:
            details["available_events"] = available
        super().__init__(f"Unknown event: '{event_name}'", details)


class UnknownCategoryError(EventError):
    def __init__(self, category: Any, available: List[str]):
        super().__init__(
            f"Unknown event category: '{category}'",
            {"category": str(category), "available_categories": available},
        )


class ListenerRegistrationError(EventError):
    """Raised when a listener cannot be attached to an event."""

    def __init__(self, event_name: Any, reason: str):
        super().__init__(
            f"Cannot register listener for '{event_name}': {reason}",
            {"event_name": str(event_name), "reason": reason},
        )


# =============================================================================
# Registry Manifest Errors
# =============================================================================

class RegistryError(OXMError):
    """Errors related to registry manifests."""


class ManifestLoadError(RegistryError):
    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Failed to load manifest '{path}': {reason}",
            {"path": path, "reason": reason},
        )


class RegistryCompatibilityError(RegistryError):
    """Raised when a newer registry drops identifiers an older one exposed."""

    def __init__(self, removed: List[str], old_version: str, new_version: str):
        super().__init__(
            f"Registry {new_version} removes events present in {old_version}: "
            f"{', '.join(removed)}",
            {
                "removed_events": removed,
                "old_version": old_version,
                "new_version": new_version,
            },
        )


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(OXMError):
    def __init__(self, key: str, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {reason}",
            {"key": key, "reason": reason},
        )
