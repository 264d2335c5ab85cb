"""
Typed failures raised by the rotation engine.

Every failure carries a machine readable ``kind``, the HTTP status the
REST layer answers with, and whether a caller may retry it.
"""


class AssignmentError(Exception):
    kind = "assignment_error"
    status_code = 400
    retryable = False

    def __init__(self, message=None):
        super().__init__(message or self.default_message())

    def default_message(self):
        return "Assignment operation failed"

    @property
    def message(self):
        return str(self)

    def as_payload(self):
        return {
            "success": False,
            "kind": self.kind,
            "error": self.message,
            "retryable": self.retryable,
        }


class ProjectNotFound(AssignmentError):
    kind = "project_not_found"
    status_code = 404

    def default_message(self):
        return "Project not found"


class ProjectNotEligible(AssignmentError):
    kind = "project_not_eligible"
    status_code = 409

    def __init__(self, status, message=None):
        self.status = status
        super().__init__(message or f"Cannot generate batch for project with status: {status}")


class NoEligibleCandidates(AssignmentError):
    kind = "no_eligible_candidates"
    status_code = 422

    def default_message(self):
        return "No eligible candidates found for the required skills"


class CandidateNotFound(AssignmentError):
    kind = "candidate_not_found"
    status_code = 404

    def default_message(self):
        return "Candidate not found"


class NotYourAssignment(AssignmentError):
    kind = "not_your_assignment"
    status_code = 403

    def default_message(self):
        return "You can only respond to your own assignments"


class BatchNotActive(AssignmentError):
    kind = "batch_not_active"
    status_code = 409

    def __init__(self, status, action="accept"):
        self.status = status
        super().__init__(f"Cannot {action} candidate from {status} batch")


class InvalidResponseStatus(AssignmentError):
    kind = "invalid_response_status"
    status_code = 409

    def __init__(self, status, action="accept"):
        self.status = status
        super().__init__(f"Cannot {action} candidate with status: {status}")


class DeadlinePassed(AssignmentError):
    kind = "deadline_passed"
    status_code = 410

    def default_message(self):
        return "Acceptance deadline has passed"


class AlreadyClaimed(AssignmentError):
    kind = "already_claimed"
    status_code = 409

    def default_message(self):
        return "Project already accepted by another developer or batch replaced"


class TransientConflict(AssignmentError):
    kind = "transient_conflict"
    status_code = 503
    retryable = True

    def default_message(self):
        return "The operation collided with a concurrent update, please retry"
