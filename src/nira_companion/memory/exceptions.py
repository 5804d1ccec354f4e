"""
Companion exception classes

Every failure the pipeline can produce maps onto one of these classes so that
routes and the orchestrator can decide what is user-visible and what is not.
"""


class CompanionError(Exception):
    """Base exception for the companion server"""

    pass


class PolicyRejection(CompanionError):
    """A policy check refused the request. User-visible, never retried."""

    error_code: str = "POLICY_REJECTED"
    status_code: int = 403

    def __init__(self, message: str, link: str | None = None):
        self.message = message
        self.link = link
        super().__init__(message)

    def to_payload(self) -> dict:
        payload = {"error": self.error_code, "message": self.message}
        if self.link is not None:
            payload["link"] = self.link
        return payload


class TrialEndedError(PolicyRejection):
    """Free trial minutes are used up"""

    error_code = "TRIAL_ENDED"
    status_code = 403

    def __init__(self, message: str, link: str, used_minutes: float, limit_minutes: float):
        self.used_minutes = used_minutes
        self.limit_minutes = limit_minutes
        super().__init__(message, link)


class MaintenanceModeError(PolicyRejection):
    """Global maintenance flag is on"""

    error_code = "MAINTENANCE"
    status_code = 503


class ProviderFailure(CompanionError):
    """An LLM / search / vision / TTS provider call failed"""

    def __init__(self, provider: str, reason: str):
        self.provider = provider
        self.reason = reason
        super().__init__(f"Provider '{provider}' failed: {reason}")


class StoreFailure(CompanionError):
    """Persistence layer unreachable or write rejected"""

    def __init__(self, message: str, collection: str | None = None):
        self.collection = collection
        super().__init__(message)


class MalformedInputError(CompanionError):
    """Request payload is missing or invalid"""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Invalid '{field}': {message}")


class BackgroundJobFailure(CompanionError):
    """A fire-and-forget memory maintenance job failed"""

    def __init__(self, job_name: str, cause: BaseException):
        self.job_name = job_name
        self.cause = cause
        super().__init__(f"Background job '{job_name}' failed: {cause}")


class AuthenticationError(CompanionError):
    """Bearer token missing or rejected by the verifier"""

    pass
