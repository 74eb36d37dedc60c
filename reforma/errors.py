"""Error types raised by the workshop core"""


class ReformaError(Exception):
    """Base class for all workshop core errors"""

    def __init__(self, message: str, user_message: str = ""):
        super().__init__(message)
        # Localized text suitable for showing to the end user
        self.user_message = user_message or message


class ValidationError(ReformaError):
    """Missing or invalid input; raised before any store call"""


class AuthorizationError(ReformaError):
    """Role-gated operation attempted by an insufficient role"""

    def __init__(self, message: str, role: str = "", user_message: str = ""):
        super().__init__(message, user_message)
        self.role = role


class PersistenceError(ReformaError):
    """Ledger store I/O failure (network, permission, corrupt file)"""
