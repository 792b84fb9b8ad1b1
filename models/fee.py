from extensions import db

from models.constants import FEE_STATUSES


class Fee(db.Model):
    __tablename__ = "fees"

    fee_id = db.Column(db.Integer, primary_key=True)

    student_id = db.Column(
        db.Integer,
        db.ForeignKey("students.student_id"),
        nullable=False
    )

    fee_type = db.Column(db.String(50), nullable=False)
    # on a pending or partially paid due this is the remaining balance
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    original_amount = db.Column(db.Numeric(10, 2))

    due_date = db.Column(db.Date)
    academic_year = db.Column(db.String(9), nullable=False)
    term = db.Column(db.String(20))

    status = db.Column(
        db.Enum(*FEE_STATUSES, name="fee_status"),
        nullable=False,
        default="pending"
    )
    paid_date = db.Column(db.Date)
    remarks = db.Column(db.String(255))

    # set on payment rows: the due this payment was recorded against
    original_fee_id = db.Column(
        db.Integer,
        db.ForeignKey("fees.fee_id"),
        nullable=True
    )

    created_at = db.Column(db.DateTime, server_default=db.func.now())

    payments = db.relationship(
        "Fee",
        backref=db.backref("original_fee", remote_side=[fee_id]),
        lazy=True
    )

    def __repr__(self):
        return f"<Fee {self.fee_id} {self.fee_type} {self.status} {self.amount}>"
