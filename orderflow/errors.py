"""Domain exceptions for the order lifecycle engine.

Raised by the service layer when a lifecycle rule is violated. The web layer
translates them into HTTP responses (see ``orderflow.web.app``).

Infeasible schedules and destinations without a pricing tier are *not*
errors: they come back as ``FeasibilityResult`` / ``PricingEstimate`` values.
"""

from __future__ import annotations


class LifecycleError(Exception):
    """Base class for every error raised by the lifecycle core."""


class UnknownStatus(LifecycleError):
    """A status value is not part of the catalog for the entity kind."""

    def __init__(self, kind: str, dimension: str, status: str):
        super().__init__(f"Unknown {dimension} status '{status}' for {kind}")
        self.kind = kind
        self.dimension = dimension
        self.status = status


class InvalidAction(LifecycleError):
    """The action is not recognized (or not offered) for this entity."""

    def __init__(self, action: str, kind: str, reason: str | None = None):
        message = f"Action '{action}' is not available for {kind}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.action = action
        self.kind = kind


class InvalidTransition(LifecycleError):
    """The requested status change is not allowed from the current status.

    Fatal to the request. Callers re-fetch the entity and re-decide; the
    request is never retried automatically.
    """

    def __init__(self, message: str, *, current: str | None = None, target: str | None = None):
        super().__init__(message)
        self.current = current
        self.target = target


class ConcurrentModification(LifecycleError):
    """Another writer changed the entity after it was read.

    The caller should re-read the entity and retry the action.
    """

    def __init__(self, entity_id, expected_version: int):
        super().__init__(
            f"Entity {entity_id} was modified concurrently (expected version {expected_version})"
        )
        self.entity_id = entity_id
        self.expected_version = expected_version


class CodeConflict(LifecycleError):
    """Concurrent creations kept claiming the same human-readable code."""

    def __init__(self, prefix: str, attempts: int):
        super().__init__(f"Could not allocate a unique {prefix} code after {attempts} attempts")
        self.prefix = prefix
        self.attempts = attempts


class ValidationError(LifecycleError):
    """Caller supplied data that breaks a business rule.

    ``issues`` lists the individual problems when there is more than one
    (e.g. several unavailable assets).
    """

    def __init__(self, message: str, issues: list[str] | None = None):
        super().__init__(message)
        self.issues = issues or []


class EntityNotFound(LifecycleError):
    """No entity exists with the given identifier."""

    def __init__(self, entity_id):
        super().__init__(f"Entity {entity_id} not found")
        self.entity_id = entity_id


class NotificationError(Exception):
    """Delivery of a post-transition notification failed."""
