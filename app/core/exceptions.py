# app/core/exceptions.py


class InvalidInput(ValueError):
    """Raised when a planning input can't be used (bad goal entry, non-positive years, etc.)"""


class PlanParseError(ValueError):
    """Model reply did not contain a usable JSON plan"""

    def __init__(self, message: str, summary: str = ""):
        super().__init__(message)
        self.summary = summary
