"""
Error taxonomy shared by the scoring, ranking and analytics services.

Routes never catch these themselves; the handlers registered in app.main turn
them into JSON responses with a stable ``error`` kind.
"""


class AssessmentError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code = 500
    kind = "assessment_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AssessmentError):
    """A request is missing required identifiers or data"""

    status_code = 400
    kind = "validation_error"


class NotFoundError(AssessmentError):
    """A referenced quiz, user or question does not exist"""

    status_code = 404
    kind = "not_found"


class StoreError(AssessmentError):
    """The underlying persistence layer failed.

    The message is kept opaque; the original exception is chained as
    ``__cause__`` and logged where it is raised. Submissions are not
    idempotent, so nothing retries on this error.
    """

    status_code = 500
    kind = "store_error"
