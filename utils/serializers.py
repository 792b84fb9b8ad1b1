from utils.formatting import money


def _iso(value):
    return value.isoformat() if value else None


def student_to_dict(s):
    return {
        "student_id": s.student_id,
        "roll_number": s.roll_number,
        "first_name": s.first_name,
        "last_name": s.last_name,
        "name": s.full_name,
        "class": s.class_name,
        "section": s.section,
        "grade_class": s.grade_class,
        "status": s.status,
        "date_of_birth": _iso(s.date_of_birth),
        "admission_date": _iso(s.admission_date),
        "guardian_name": s.guardian_name,
        "guardian_phone": s.guardian_phone,
        "guardian_email": s.guardian_email,
        "address": s.address,
    }


def student_brief(s):
    return {
        "student_id": s.student_id,
        "roll_number": s.roll_number,
        "name": s.full_name,
        "class": s.class_name,
        "section": s.section,
    }


def user_to_dict(u):
    return {
        "user_id": u.user_id,
        "username": u.username,
        "full_name": u.full_name,
        "email": u.email,
        "role": u.role,
        "is_active": u.is_active,
        "assignments": [assignment_to_dict(a) for a in u.assignments],
    }


def assignment_to_dict(a):
    return {
        "assignment_id": a.assignment_id,
        "user_id": a.user_id,
        "class": a.class_name,
        "section": a.section,
    }


def exam_to_dict(e):
    return {
        "exam_id": e.exam_id,
        "name": e.name,
        "class": e.class_name,
        "section": e.section,
        "grade_class": e.grade_class,
        "exam_date": _iso(e.exam_date),
        "total_marks": e.total_marks,
        "status": e.status,
        "subjects": [exam_subject_to_dict(es) for es in e.exam_subjects],
    }


def exam_subject_to_dict(es):
    return {
        "exam_subject_id": es.exam_subject_id,
        "exam_id": es.exam_id,
        "subject_id": es.subject_id,
        "subject_name": es.subject.name if es.subject else None,
        "subject_code": es.subject.code if es.subject else None,
        "max_marks": es.max_marks,
    }


def grade_to_dict(g):
    return {
        "grade_id": g.grade_id,
        "student_id": g.student_id,
        "exam_id": g.exam_id,
        "exam_subject_id": g.exam_subject_id,
        "marks_obtained": g.marks_obtained,
    }


def fee_to_dict(f):
    return {
        "fee_id": f.fee_id,
        "student_id": f.student_id,
        "fee_type": f.fee_type,
        "amount": money(f.amount),
        "original_amount": money(f.original_amount) if f.original_amount is not None else None,
        "due_date": _iso(f.due_date),
        "academic_year": f.academic_year,
        "term": f.term,
        "status": f.status,
        "paid_date": _iso(f.paid_date),
        "remarks": f.remarks,
        "original_fee_id": f.original_fee_id,
    }


def attendance_to_dict(a):
    return {
        "attendance_id": a.attendance_id,
        "student_id": a.student_id,
        "date": _iso(a.date),
        "status": a.status,
        "remarks": a.remarks,
    }


def activity_to_dict(a):
    return {
        "activity_id": a.activity_id,
        "action": a.action,
        "details": a.details,
        "module": a.module,
        "created_at": _iso(a.created_at),
    }
