"""Typed exceptions for job, template, catalog and billing failures."""


class JobsError(Exception):
    """Base class for domain errors raised by the core services."""


class InvalidFieldError(JobsError, ValueError):
    """
    A field failed validation.

    User-correctable. Raised before any persistence side effect.
    """


class NotFoundError(JobsError):
    """Entity with the requested id does not exist."""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InvariantViolationError(JobsError):
    """Operation would break a structural invariant (e.g. emptying a template)."""


class ExternalUnavailableError(JobsError):
    """Object store or ledger could not be reached. Not retried automatically."""

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__(f"{service} unavailable: {message}")


class ExternalNotFoundError(JobsError):
    """A record required for billing does not exist in the external ledger."""


class NoBillableItemsError(JobsError):
    """Job has nothing to invoice: no item with quantity and no permit."""
