from typing import Optional, Any

class OnboardingError(Exception):
    """
    Base exception for the onboarding state layer.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.details = details
        super().__init__(self.message)

class StorageError(OnboardingError):
    """
    Raised when a JSON document cannot be read, parsed or written.
    """
    def __init__(self, message: str = "Storage error", details: Optional[Any] = None):
        super().__init__(message, code="STORAGE_ERROR", details=details)

class InvalidPatchError(OnboardingError):
    """
    Raised when an update carries unknown or ill-typed fields.
    """
    def __init__(self, message: str = "Invalid update", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", details=details)

class ConfigurationError(OnboardingError):
    """
    Raised when application settings are invalid.
    """
    def __init__(self, message: str = "Invalid configuration", details: Optional[Any] = None):
        super().__init__(message, code="CONFIGURATION_ERROR", details=details)
