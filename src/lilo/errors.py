"""Service-layer error taxonomy.

Every failure a service can report to a caller is one of these classes.
Routers let them propagate; the global handler in
``lilo.middleware.error_handler`` renders them as
``{"detail": <message>, "code": <code>}`` with the class's status code.

``PledgeRequired`` is a flow-control signal rather than a failure: the
client is expected to show the pledge form and retry the original write.
"""

from __future__ import annotations


class ServiceError(ValueError):
    """Base class for errors raised by lilo services."""

    code: str = "SERVICE_ERROR"
    status_code: int = 400

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message()
        super().__init__(self.message)

    @classmethod
    def default_message(cls) -> str:
        return "Request could not be completed"


class ValidationError(ServiceError):
    """Input rejected before any write (bad amount, empty name, ...)."""

    code = "VALIDATION_ERROR"
    status_code = 400


class PledgeRequired(ServiceError):
    """A sleep log for the active week needs a pledge first."""

    code = "PLEDGE_REQUIRED"
    status_code = 428

    @classmethod
    def default_message(cls) -> str:
        return "Pledge your sleep tax for this week before logging sleep"


class NotFound(ServiceError):
    code = "NOT_FOUND"
    status_code = 404

    @classmethod
    def default_message(cls) -> str:
        return "Not found"


class Unauthorized(ServiceError):
    """Caller is authenticated but not allowed to perform the action."""

    code = "UNAUTHORIZED"
    status_code = 403

    @classmethod
    def default_message(cls) -> str:
        return "You are not allowed to do that"


class Conflict(ServiceError):
    """The action was already done (duplicate pledge, already a member)."""

    code = "CONFLICT"
    status_code = 409


class RolloverError(ServiceError):
    """The store failed while closing one week and opening the next."""

    code = "ROLLOVER_FAILED"
    status_code = 503

    @classmethod
    def default_message(cls) -> str:
        return "Week rollover failed; no changes were saved"
