from .user import User
from .class_assignment import ClassAssignment
from .student import Student
from .subject import Subject
from .class_subject import ClassSubject
from .exam import Exam
from .exam_subject import ExamSubject
from .grade import Grade
from .fee import Fee
from .attendance import Attendance
from .activity import Activity
__all__ = ["User", "ClassAssignment", "Student", "Subject", "ClassSubject", "Exam", "ExamSubject", "Grade", "Fee", "Attendance", "Activity"]
