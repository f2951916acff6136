# This project was developed with assistance from AI tools.
"""Workflow error taxonomy.

Services raise these; ``main`` turns them into RFC 7807 responses using
the ``status_code`` each class carries.
"""


class WorkflowError(Exception):
    """Base class for expected, client-visible workflow failures."""

    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotAuthorized(WorkflowError):
    status_code = 403


class NotFound(WorkflowError):
    status_code = 404


class ClientNotFound(NotFound):
    def __init__(self, client_id: int):
        super().__init__("Client not found")
        self.client_id = client_id


class InvalidState(WorkflowError):
    """Entity is not in a state that allows the operation.

    ``already_verified`` marks the case of a signature session that was
    already completed, so the capture page can show "already signed".
    """

    status_code = 409

    def __init__(self, detail: str, *, already_verified: bool = False):
        super().__init__(detail)
        self.already_verified = already_verified


class AlreadyOnboarded(InvalidState):
    def __init__(self):
        super().__init__("Client has already completed onboarding")


class SessionExpired(WorkflowError):
    status_code = 410


class ValidationFailed(WorkflowError):
    status_code = 422


class MissingClientEmail(ValidationFailed):
    def __init__(self):
        super().__init__("Client has no email address")


class UpstreamFailure(WorkflowError):
    status_code = 502


class MailDeliveryError(UpstreamFailure):
    pass
