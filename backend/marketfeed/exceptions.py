"""Domain exceptions for the marketplace feed backend.

These carry enough context (which rule, which entity) for the request layer
to choose a response; nothing here knows about HTTP.
"""

from typing import Any, Dict, Optional


class MarketFeedError(Exception):
    """Base exception for marketplace feed errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class DomainRuleViolation(MarketFeedError):
    """A business rule rejected the operation."""


class PermissionDeniedError(DomainRuleViolation):
    """The caller does not own the entity it tried to modify."""

    def __init__(self, action: str, entity: str, entity_id: Any):
        super().__init__(
            f"You do not have permission to {action} this {entity}",
            details={"entity": entity, "entity_id": entity_id},
        )


class NotFoundError(DomainRuleViolation):
    """An operation required an entity that does not exist."""

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            f"{entity.capitalize()} not found",
            details={"entity": entity, "entity_id": entity_id},
        )


class ConflictError(DomainRuleViolation):
    """The operation would violate a uniqueness rule."""


class AuthenticationError(MarketFeedError):
    """Credentials are missing, invalid, expired or revoked.

    ``reason`` is for logs only; callers always see the same message.
    """

    public_message = "Not authenticated"

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(self.public_message, details=details)
        self.reason = reason


class RoleRequiredError(MarketFeedError):
    """Authenticated, but the role does not allow this operation."""


class InvalidCredentialsError(MarketFeedError):
    """Login failed for a known reason that is safe to show."""


class FeedItemMissingError(MarketFeedError):
    """A feed entry references an item that no longer exists."""

    def __init__(self, entry_id: int, item_id: int):
        super().__init__(
            f"Item {item_id} referenced by feed entry {entry_id} not found",
            details={"entry_id": entry_id, "item_id": item_id},
        )
