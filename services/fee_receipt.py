from io import BytesIO

from fpdf import FPDF

from services.exceptions import ValidationError
from utils.formatting import money


def _latin1(value):
    # core PDF fonts only cover latin-1
    return str(value if value is not None else "").encode("latin-1", "replace").decode("latin-1")


def payment_receipt_pdf(payment, school_name, balance=None):
    """Single-page receipt for a paid fee row."""
    if payment.status != "paid":
        raise ValidationError("Receipts are only available for payments", field="fee_id")

    student = payment.student
    pdf = FPDF()
    pdf.add_page()

    pdf.set_font("Helvetica", "B", 14)
    pdf.cell(190, 10, _latin1(school_name), new_x="LMARGIN", new_y="NEXT", align="C")
    pdf.set_font("Helvetica", "B", 12)
    pdf.cell(190, 10, "FEE PAYMENT RECEIPT", new_x="LMARGIN", new_y="NEXT", align="C")
    pdf.ln(6)

    lines = [
        ("Receipt No", f"{payment.fee_id:06d}"),
        ("Student", f"{student.full_name} (Roll {student.roll_number})"),
        ("Class", f"{student.class_name}-{student.section}"),
        ("Fee Type", payment.fee_type),
        ("Academic Year", payment.academic_year),
        ("Term", payment.term or "-"),
        ("Due Date", payment.due_date.isoformat() if payment.due_date else "-"),
        ("Paid On", payment.paid_date.isoformat() if payment.paid_date else "-"),
        ("Amount Paid", f"{money(payment.amount):.2f}"),
    ]
    if balance is not None:
        lines.append(("Balance Remaining", f"{money(balance):.2f}"))
    if payment.remarks:
        lines.append(("Remarks", payment.remarks))

    for label, value in lines:
        pdf.set_font("Helvetica", "B", 10)
        pdf.cell(60, 9, _latin1(label), border=1)
        pdf.set_font("Helvetica", size=10)
        pdf.cell(130, 9, _latin1(value), border=1, new_x="LMARGIN", new_y="NEXT")

    output = BytesIO(bytes(pdf.output()))
    output.seek(0)
    return output
