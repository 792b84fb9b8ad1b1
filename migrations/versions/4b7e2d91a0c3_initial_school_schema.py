"""initial school schema

Revision ID: 4b7e2d91a0c3
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "4b7e2d91a0c3"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("user_id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=50), nullable=False, unique=True),
        sa.Column("full_name", sa.String(length=120), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.Enum("admin", "teacher", "staff", name="user_role"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=True, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
    )

    op.create_table(
        "class_assignments",
        sa.Column("assignment_id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("class", sa.String(length=5), nullable=False),
        sa.Column("section", sa.String(length=2), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"]),
    )

    op.create_table(
        "students",
        sa.Column("student_id", sa.Integer(), primary_key=True),
        sa.Column("roll_number", sa.String(length=20), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("class", sa.String(length=5), nullable=False),
        sa.Column("section", sa.String(length=2), nullable=False),
        sa.Column("grade_class", sa.String(length=5), nullable=False),
        sa.Column("status", sa.Enum("active", "inactive", "graduated", name="student_status"), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("admission_date", sa.Date(), nullable=True),
        sa.Column("guardian_name", sa.String(length=120), nullable=True),
        sa.Column("guardian_phone", sa.String(length=20), nullable=True),
        sa.Column("guardian_email", sa.String(length=255), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
        sa.UniqueConstraint("roll_number", "class", "section", name="unique_roll_class_section"),
    )

    op.create_table(
        "subjects",
        sa.Column("subject_id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("code", sa.String(length=20), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=True, server_default=sa.text("1")),
    )

    op.create_table(
        "class_subjects",
        sa.Column("class_subject_id", sa.Integer(), primary_key=True),
        sa.Column("class", sa.String(length=5), nullable=False),
        sa.Column("section", sa.String(length=2), nullable=False),
        sa.Column("subject_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["subject_id"], ["subjects.subject_id"]),
        sa.UniqueConstraint("class", "section", "subject_id", name="unique_class_section_subject"),
    )

    op.create_table(
        "exams",
        sa.Column("exam_id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("class", sa.String(length=5), nullable=False),
        sa.Column("section", sa.String(length=2), nullable=False),
        sa.Column("grade_class", sa.String(length=5), nullable=False),
        sa.Column("exam_date", sa.Date(), nullable=True),
        sa.Column("total_marks", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "status",
            sa.Enum("scheduled", "ongoing", "completed", "cancelled", name="exam_status"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
    )

    op.create_table(
        "exam_subjects",
        sa.Column("exam_subject_id", sa.Integer(), primary_key=True),
        sa.Column("exam_id", sa.Integer(), nullable=False),
        sa.Column("subject_id", sa.Integer(), nullable=False),
        sa.Column("max_marks", sa.Integer(), nullable=False, server_default=sa.text("100")),
        sa.ForeignKeyConstraint(["exam_id"], ["exams.exam_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["subject_id"], ["subjects.subject_id"]),
    )

    op.create_table(
        "grades",
        sa.Column("grade_id", sa.Integer(), primary_key=True),
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column("exam_id", sa.Integer(), nullable=False),
        sa.Column("exam_subject_id", sa.Integer(), nullable=True),
        sa.Column("marks_obtained", sa.String(length=10), nullable=False),
        sa.Column("remarks", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
        sa.ForeignKeyConstraint(["student_id"], ["students.student_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["exam_id"], ["exams.exam_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["exam_subject_id"], ["exam_subjects.exam_subject_id"], ondelete="CASCADE"),
        sa.UniqueConstraint("student_id", "exam_subject_id", name="unique_student_exam_subject"),
    )

    op.create_table(
        "fees",
        sa.Column("fee_id", sa.Integer(), primary_key=True),
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column("fee_type", sa.String(length=50), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("original_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("academic_year", sa.String(length=9), nullable=False),
        sa.Column("term", sa.String(length=20), nullable=True),
        sa.Column(
            "status",
            sa.Enum("pending", "partially_paid", "paid", name="fee_status"),
            nullable=False,
        ),
        sa.Column("paid_date", sa.Date(), nullable=True),
        sa.Column("remarks", sa.String(length=255), nullable=True),
        sa.Column("original_fee_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
        sa.ForeignKeyConstraint(["student_id"], ["students.student_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["original_fee_id"], ["fees.fee_id"]),
    )

    op.create_table(
        "attendance",
        sa.Column("attendance_id", sa.Integer(), primary_key=True),
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column("marked_by", sa.Integer(), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("present", "absent", "late", "excused", name="attendance_status"),
            nullable=False,
        ),
        sa.Column("remarks", sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(["student_id"], ["students.student_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["marked_by"], ["users.user_id"]),
        sa.UniqueConstraint("student_id", "date", name="unique_student_date"),
    )

    op.create_table(
        "activities",
        sa.Column("activity_id", sa.Integer(), primary_key=True),
        sa.Column("action", sa.String(length=255), nullable=False),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("module", sa.String(length=50), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"]),
    )


def downgrade():
    op.drop_table("activities")
    op.drop_table("attendance")
    op.drop_table("fees")
    op.drop_table("grades")
    op.drop_table("exam_subjects")
    op.drop_table("exams")
    op.drop_table("class_subjects")
    op.drop_table("subjects")
    op.drop_table("students")
    op.drop_table("class_assignments")
    op.drop_table("users")
