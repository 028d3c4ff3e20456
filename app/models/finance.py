"""Quotations to clients and laboratory expenses."""
from datetime import datetime
from app.extensions import db


QUOTE_DRAFT = 'Draft'
QUOTE_SENT = 'Sent'
QUOTE_ACCEPTED = 'Accepted'
QUOTE_DECLINED = 'Declined'

QUOTE_STATUSES = [QUOTE_DRAFT, QUOTE_SENT, QUOTE_ACCEPTED, QUOTE_DECLINED]

QUOTE_COLORS = {
    QUOTE_DRAFT: 'secondary',
    QUOTE_SENT: 'info',
    QUOTE_ACCEPTED: 'success',
    QUOTE_DECLINED: 'danger',
}

EXPENSE_CATEGORIES = [
    'Equipment', 'Consumables', 'Utilities', 'Salaries', 'Rent', 'Marketing',
    'Travel', 'Repairs & Maintenance', 'Other',
]


class Quotation(db.Model):
    """Priced offer of tests to a client, convertible to an invoice."""
    __tablename__ = 'quotations'

    id = db.Column(db.Integer, primary_key=True)
    quote_number = db.Column(db.String(30), unique=True, nullable=False, index=True)
    client_name = db.Column(db.String(150), nullable=False)
    project_title = db.Column(db.String(200))
    # [{'description', 'quantity', 'unit_price', 'total'}]
    items = db.Column(db.JSON, default=list)
    subtotal = db.Column(db.Float, default=0.0)
    vat_rate = db.Column(db.Float, default=0.0)
    tax = db.Column(db.Float, default=0.0)
    total = db.Column(db.Float, default=0.0)
    status = db.Column(db.String(20), default=QUOTE_DRAFT, index=True)
    issue_date = db.Column(db.Date)
    valid_until = db.Column(db.Date)
    notes = db.Column(db.Text)
    invoice_id = db.Column(db.Integer, db.ForeignKey('invoices.id'))
    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    invoice = db.relationship('Invoice', backref=db.backref('quotation', uselist=False))
    created_by = db.relationship('User', foreign_keys=[created_by_id])

    @property
    def status_color(self) -> str:
        return QUOTE_COLORS.get(self.status, 'secondary')

    @property
    def is_editable(self) -> bool:
        return self.status == QUOTE_DRAFT

    @property
    def can_convert(self) -> bool:
        return self.invoice_id is None and self.status in (QUOTE_DRAFT, QUOTE_SENT)

    def __repr__(self) -> str:
        return f'<Quotation {self.quote_number} [{self.status}]>'


class Expense(db.Model):
    """Laboratory spending record."""
    __tablename__ = 'expenses'

    id = db.Column(db.Integer, primary_key=True)
    expense_date = db.Column(db.Date, nullable=False, index=True)
    category = db.Column(db.String(40), nullable=False, index=True)
    description = db.Column(db.String(255), nullable=False)
    amount = db.Column(db.Float, nullable=False)
    vendor = db.Column(db.String(150))
    recorded_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    recorded_by = db.relationship('User', foreign_keys=[recorded_by_id])

    def __repr__(self) -> str:
        return f'<Expense {self.expense_date} {self.category} {self.amount}>'
