class GradebookError(Exception):
    status_code = 500

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = list(details or [])

    def to_dict(self):
        body = {"success": False, "message": self.message}
        if self.details:
            body["errors"] = self.details
        return body


class ValidationError(GradebookError):
    status_code = 400


class AuthorizationError(GradebookError):
    status_code = 403


class NotFoundError(GradebookError):
    status_code = 404


class ConflictError(GradebookError):
    status_code = 409


class TransactionError(GradebookError):
    status_code = 503


class BatchValidationError(ValidationError):
    def __init__(self, message, failures):
        super().__init__(message, details=failures)

    @property
    def failures(self):
        return self.details

    @property
    def student_ids(self):
        return [f.get("student_id") for f in self.details]


class BatchConflictError(ConflictError):
    """Batch entries disagree with the existing rows (create vs. edit)."""

    def __init__(self, message, failures):
        super().__init__(message, details=failures)

    @property
    def failures(self):
        return self.details

    @property
    def student_ids(self):
        return [f.get("student_id") for f in self.details]
