from typing import Optional


class PushServiceError(Exception):
    """Base for every error the service raises on purpose."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PushServiceError):
    status_code = 400


class NotFoundError(PushServiceError):
    status_code = 404


class OperationFailedError(PushServiceError):
    """A store failure during a lifecycle operation, reported generically."""


class PushConfigError(PushServiceError):
    """VAPID keys are missing, so nothing can be sent."""


class StoreError(PushServiceError):
    pass


class DeliveryFailure(PushServiceError):
    """One endpoint refused (or never received) a push.

    Never leaves the dispatcher: it is folded into the failed count.
    """

    def __init__(self, endpoint: str, push_status: Optional[int], message: str):
        super().__init__(message)
        self.endpoint = endpoint
        self.push_status = push_status
