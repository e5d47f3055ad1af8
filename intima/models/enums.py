import enum


class UserRole(str, enum.Enum):
    STUDENT = "student"
    INTIMA = "intima"


class AffiliateCategory(str, enum.Enum):
    SPORTS = "Sports"
    ACADEMIC = "Academic"
    SPECIAL_INTEREST = "Special Interest"
    SERVICE = "Service"


class AffiliateStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    PENDING_APPROVAL = "Pending Approval"


class FormType(str, enum.Enum):
    SAP = "SAP"
    ASF = "ASF"


class SubmissionStatus(str, enum.Enum):
    PENDING_VALIDATION = "Pending Validation"
    AWAITING_INTIMA_REVIEW = "Awaiting INTIMA Review"
    REQUIRES_AMENDMENT = "Requires Amendment"
    APPROVED = "Approved"
    REJECTED = "Rejected"


TERMINAL_STATUSES = frozenset({SubmissionStatus.APPROVED, SubmissionStatus.REJECTED})


class ReviewStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    NOT_REQUIRED = "Not Required"


class Department(str, enum.Enum):
    FINANCE = "Finance"
    ACTIVITIES = "Activities"


class ValidationState(str, enum.Enum):
    NOT_STARTED = "NOT_STARTED"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class DocumentKind(str, enum.Enum):
    ORIGINAL = "ORIGINAL"
    SIGNED = "SIGNED"
    AMENDMENT = "AMENDMENT"


class CommentThread(str, enum.Enum):
    GENERAL = "GENERAL"
    FINANCE = "FINANCE"
    ACTIVITIES = "ACTIVITIES"


class CommentKind(str, enum.Enum):
    USER = "USER"
    VALIDATION = "VALIDATION"
    DEPARTMENT = "DEPARTMENT"
    DECISION = "DECISION"
    AMENDMENT = "AMENDMENT"


class Severity(str, enum.Enum):
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"
    INFO = "info"
