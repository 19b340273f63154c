"""
Residency Pulse — Exception Hierarchy

  PulseError
  ├── ValidationError             — bad client payload (HTTP 400, never retried)
  │   ├── MissingFieldError
  │   └── InvalidFieldError
  ├── BackendConfigurationError   — malformed remote settings (logged, fallback)
  ├── BackendIOError              — file/remote store failure (HTTP 500)
  └── DecodeError                 — one stored entry unparsable (skipped)
"""


class PulseError(Exception):
    """Base exception for all Residency Pulse failures."""


class ValidationError(PulseError):
    """Raised when an incoming submission is missing or malformed."""


class MissingFieldError(ValidationError):
    """Raised when one or more required fields are absent."""

    def __init__(self, fields):
        self.fields = list(fields)
        super().__init__(f"Missing required fields: {', '.join(self.fields)}")


class InvalidFieldError(ValidationError):
    """Raised when a field is present but unusable."""

    def __init__(self, field, reason):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid field '{field}': {reason}")


class BackendConfigurationError(PulseError):
    """Raised for malformed remote store connection parameters."""


class BackendIOError(PulseError):
    """Raised when reading or writing the submission store fails."""


class DecodeError(PulseError):
    """Raised when a single stored record cannot be decoded."""
