# Enumerations shared by the models, services and forms.

USER_ROLES = ("admin", "teacher", "staff")
ADMIN_ROLE = "admin"

STUDENT_STATUSES = ("active", "inactive", "graduated")

EXAM_STATUSES = ("scheduled", "ongoing", "completed", "cancelled")

ATTENDANCE_STATUSES = ("present", "absent", "late", "excused")

FEE_STATUSES = ("pending", "partially_paid", "paid")
OUTSTANDING_FEE_STATUSES = ("pending", "partially_paid")

FEE_TYPES = ("tuition", "bus", "canteen", "miscellaneous", "event", "custom")
FEE_TERMS = ("1st Term", "2nd Term", "3rd Term", "Annual")

ABSENT_MARK = "AB"
