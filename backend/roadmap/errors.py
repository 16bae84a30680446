"""
Error taxonomy shared by the roadmap engine and the career service.
"""


class CareerCompassError(Exception):
    """Base class for every error raised to callers of the service."""
    pass


class UnauthorizedError(CareerCompassError):
    """Raised when a mutation is attempted without an authenticated identity."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFoundError(CareerCompassError):
    """
    Raised when an entity is missing or belongs to another user.

    Both cases carry the same message so callers cannot test for the
    existence of other users' records.
    """

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class UnknownTemplateError(CareerCompassError):
    """Raised when a career key has no template in the catalog."""

    def __init__(self, career_key: str):
        self.career_key = career_key
        super().__init__(f"Unknown career template: {career_key}")


class InvalidRoadmapError(CareerCompassError):
    """Raised when caller-supplied roadmap content breaks an invariant."""
    pass


class StepLockedError(CareerCompassError):
    """Raised on toggling a locked step while server-side lock enforcement is on."""

    def __init__(self, step_id: str):
        self.step_id = step_id
        super().__init__(f"Step {step_id} is locked until the previous step is completed")
