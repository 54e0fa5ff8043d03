"""Assignment errors surfaced to the operator"""

from typing import Optional

from .models import AssignmentWarning


class AssignmentError(Exception):
    """Base class for operator-facing assignment failures"""

    code = "assignment_error"
    status_code = 400

    def __init__(self, message: str, therapist: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.therapist = therapist

    def as_warning(self, entry_id: Optional[str] = None) -> AssignmentWarning:
        """Recoverable errors are reported on the result instead of raised"""
        return AssignmentWarning(
            code=self.code,
            message=self.message,
            therapist=self.therapist,
            entry_id=entry_id,
        )


class NoEligibleTherapist(AssignmentError):
    code = "no_eligible_therapist"
    status_code = 409


class CertificationMismatch(AssignmentError):
    code = "certification_mismatch"
    status_code = 422


class SchedulingConflict(AssignmentError):
    code = "scheduling_conflict"
    status_code = 409


class LeadTimeViolation(AssignmentError):
    code = "lead_time_violation"
    status_code = 409


class InvalidGroupComposition(AssignmentError):
    code = "invalid_group_composition"
    status_code = 409


class InvalidSchedule(AssignmentError):
    code = "invalid_schedule"
    status_code = 422


class UnknownService(AssignmentError):
    code = "unknown_service"
    status_code = 404


class UnknownTherapist(AssignmentError):
    code = "unknown_therapist"
    status_code = 404


class EntryNotFound(AssignmentError):
    code = "entry_not_found"
    status_code = 404


class EntryStateError(AssignmentError):
    code = "entry_state_error"
    status_code = 409
