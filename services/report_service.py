from collections import OrderedDict
from datetime import datetime
from io import BytesIO

import pandas as pd
from flask import current_app

from models import Attendance, Exam, ExamSubject, Grade, Student
from services.access_policy import require_access
from services.attendance_service import by_student_range, summarize
from services.exceptions import ValidationError
from services.grading import aggregate_for_exam, exam_percentage, letter_grade, mark_value
from services.record_store import Range, get_store
from utils.formatting import one_decimal, parse_date


def class_marks_report(exam_id, principal=None):
    store = get_store()
    exam = store.get_or_404(Exam, int(exam_id), "Exam")
    if principal is not None:
        require_access(principal, exam.class_name, exam.section)

    students = store.select(
        Student,
        {"class_name": exam.class_name, "section": exam.section},
        ["roll_number"],
    )
    exam_subjects = store.select(ExamSubject, {"exam_id": exam.exam_id}, ["exam_subject_id"])
    grades = store.select(Grade, {"exam_id": exam.exam_id})
    totals = aggregate_for_exam(exam, exam_subjects, grades)

    rows = []
    for student in students:
        result = totals.get(student.student_id, {"total_marks": 0.0, "percentage": 0.0})
        rows.append({
            "student": student,
            "grades": [g for g in grades if g.student_id == student.student_id],
            "total_marks": result["total_marks"],
            "percentage": result["percentage"],
            "grade": letter_grade(result["percentage"]),
        })

    marks = [r["total_marks"] for r in rows]
    return {
        "title": f"Class {exam.class_name}-{exam.section} - {exam.name} Marks Report",
        "exam": exam,
        "exam_subjects": exam_subjects,
        "rows": rows,
        "summary": {
            "total_students": len(students),
            "average_marks": one_decimal(sum(marks) / len(marks)) if marks else 0.0,
            "highest_marks": max(marks) if marks else 0.0,
            "lowest_marks": min(marks) if marks else 0.0,
        },
    }


def student_marks_report(student_id, principal=None):
    store = get_store()
    student = store.get_or_404(Student, int(student_id), "Student")
    if principal is not None:
        require_access(principal, student.class_name, student.section)

    grades = store.select(Grade, {"student_id": student.student_id}, ["-created_at"])
    by_exam = OrderedDict()
    for grade in grades:
        by_exam.setdefault(grade.exam_id, []).append(grade)

    exams = []
    for exam_id, exam_grades in by_exam.items():
        exam = exam_grades[0].exam
        total = sum(mark_value(g.marks_obtained) for g in exam_grades)
        pct = exam_percentage(total, exam.total_marks)
        exams.append({
            "exam": exam,
            "grades": exam_grades,
            "total_marks": total,
            "percentage": pct,
            "grade": letter_grade(pct),
        })

    return {
        "title": f"{student.full_name} Marks Report",
        "student": student,
        "exams": exams,
        "summary": {
            "total_exams": len(exams),
            "average_percentage": (
                one_decimal(sum(e["percentage"] for e in exams) / len(exams)) if exams else 0.0
            ),
        },
    }


def _date_range(start, end):
    start = parse_date(start, "start_date")
    end = parse_date(end, "end_date")
    if start > end:
        raise ValidationError("start_date must be on or before end_date", field="start_date")
    return start, end


def class_attendance_report(class_name, section, start, end, principal=None):
    if principal is not None:
        require_access(principal, class_name, section)
    start, end = _date_range(start, end)

    store = get_store()
    students = store.select(
        Student,
        {"class_name": str(class_name), "section": section},
        ["roll_number"],
    )
    records = store.select(Attendance, {
        "student_id": [s.student_id for s in students],
        "date": Range(gte=start, lte=end),
    })
    by_student = {}
    for record in records:
        by_student.setdefault(record.student_id, []).append(record)

    rows = []
    for student in students:
        summary = summarize(by_student.get(student.student_id, []))
        summary["student"] = student
        rows.append(summary)

    return {
        "title": f"Class {class_name}-{section} Attendance Report",
        "period": f"{start.isoformat()} to {end.isoformat()}",
        "rows": rows,
        "summary": {
            "total_students": len(students),
            "average_attendance": (
                one_decimal(sum(r["percentage"] for r in rows) / len(rows)) if rows else 0.0
            ),
        },
    }


def student_attendance_report(student_id, start, end, principal=None):
    store = get_store()
    student = store.get_or_404(Student, int(student_id), "Student")
    if principal is not None:
        require_access(principal, student.class_name, student.section)
    start, end = _date_range(start, end)

    data = by_student_range(student.student_id, start, end)
    return {
        "title": f"{student.full_name} Attendance Report",
        "period": f"{start.isoformat()} to {end.isoformat()}",
        "student": student,
        "data": data,
    }


# =========================================================
# EXPORTS
# =========================================================
def class_marks_frame(report):
    columns = ["Roll No", "Student Name"]
    subject_columns = OrderedDict(
        (es.exam_subject_id, es.subject.name if es.subject else f"Subject {es.exam_subject_id}")
        for es in report["exam_subjects"]
    )
    columns.extend(subject_columns.values())
    columns.extend(["Total", "Percentage", "Grade"])

    data = []
    for row in report["rows"]:
        marks = {g.exam_subject_id: g.marks_obtained for g in row["grades"]}
        line = [row["student"].roll_number, row["student"].full_name]
        line.extend(marks.get(es_id, "") for es_id in subject_columns)
        line.extend([row["total_marks"], row["percentage"], row["grade"]])
        data.append(line)
    return pd.DataFrame(data, columns=columns)


def report_to_excel(df, sheet_name="Report"):
    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
    output.seek(0)
    return output


def class_marks_pdf(report):
    from reportlab.lib import colors
    from reportlab.lib.pagesizes import A4
    from reportlab.lib.styles import getSampleStyleSheet
    from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

    exam = report["exam"]
    now_text = datetime.now().strftime("%Y-%m-%d %H:%M")

    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, leftMargin=24, rightMargin=24, topMargin=24, bottomMargin=24)
    styles = getSampleStyleSheet()

    summary = report["summary"]
    elements = [
        Paragraph(current_app.config.get("SCHOOL_NAME", ""), styles["Title"]),
        Paragraph(report["title"], styles["Heading2"]),
        Paragraph(
            f"Total Marks: {exam.total_marks} | Average: {summary['average_marks']} | "
            f"Highest: {summary['highest_marks']} | Lowest: {summary['lowest_marks']} | "
            f"Generated: {now_text}",
            styles["Normal"],
        ),
        Spacer(1, 12),
    ]

    table_data = [["Roll No", "Student Name", "Total", "Percentage", "Grade"]]
    for row in report["rows"]:
        table_data.append([
            row["student"].roll_number,
            row["student"].full_name,
            f"{row['total_marks']:g}/{exam.total_marks}",
            f"{row['percentage']}%",
            row["grade"],
        ])

    if len(table_data) == 1:
        table_data.append(["--", "No data", "--", "--", "--"])

    table = Table(table_data, repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.black),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ALIGN", (2, 1), (4, -1), "CENTER"),
    ]))

    elements.append(table)
    doc.build(elements)
    buffer.seek(0)
    return buffer
