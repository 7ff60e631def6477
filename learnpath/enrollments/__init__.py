"""Enrollment lifecycle module.

- EnrollmentSource: FREE, PAYMENT
- EnrollmentStatus: ENROLLED, COMPLETED (derived from progress)
- One enrollment per (student, course)
"""

from .models import ENROLLMENTS_TABLES_CQL, Enrollment, EnrollmentSource, EnrollmentStatus


__all__ = [
    "ENROLLMENTS_TABLES_CQL",
    "Enrollment",
    "EnrollmentSource",
    "EnrollmentStatus",
]
