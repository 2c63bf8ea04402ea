class ToolkitError(Exception):
    """Base class for failures that skip one unit of work."""


class CredentialError(ToolkitError):
    """The cross-account role could not be assumed."""

    def __init__(self, account_id: str, role_name: str, reason: str = ""):
        self.account_id = account_id
        self.role_name = role_name
        self.reason = reason
        super().__init__(f"Cannot assume {role_name} in {account_id}: {reason}")


class BackendError(ToolkitError):
    """CloudWatch call failed and will not be retried."""

    def __init__(self, operation: str, reason: str = "", code: str = ""):
        self.operation = operation
        self.reason = reason
        self.code = code
        super().__init__(f"{operation} failed: {code or reason}")


class BackendTransientError(BackendError):
    """Throttling or server-side failure; eligible for retry."""
