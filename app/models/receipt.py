"""Sample receipt and invoice models."""
from datetime import datetime
from app.extensions import db


DELIVERY_DELIVERED_BY = 'deliveredBy'
DELIVERY_PICKED_BY = 'pickedBy'

DELIVERY_MODES = [DELIVERY_DELIVERED_BY, DELIVERY_PICKED_BY]
DELIVERY_LABELS = {
    DELIVERY_DELIVERED_BY: 'Delivered by',
    DELIVERY_PICKED_BY: 'Picked by',
}

# Invoice status constants
INVOICE_DRAFT = 'Draft'
INVOICE_SENT = 'Sent'
INVOICE_PAID = 'Paid'
INVOICE_PARTIALLY_PAID = 'Partially Paid'
INVOICE_OVERDUE = 'Overdue'

INVOICE_STATUSES = [INVOICE_DRAFT, INVOICE_SENT, INVOICE_PAID,
                    INVOICE_PARTIALLY_PAID, INVOICE_OVERDUE]

INVOICE_COLORS = {
    INVOICE_DRAFT: 'secondary',
    INVOICE_SENT: 'info',
    INVOICE_PAID: 'success',
    INVOICE_PARTIALLY_PAID: 'warning',
    INVOICE_OVERDUE: 'danger',
}


class Receipt(db.Model):
    """Snapshot of a sample intake.

    Attributes
    ----------
    receipt_number : int
        Sequential receipt number, also used in certificate numbers
    form_data : dict
        Client, project, delivery and transmittal details as entered
    tests : list of dict
        Selected tests with quantities and sample sets
    """
    __tablename__ = 'receipts'

    id = db.Column(db.Integer, primary_key=True)
    receipt_number = db.Column(db.Integer, unique=True, nullable=False, index=True)
    client_name = db.Column(db.String(150), nullable=False)
    project_title = db.Column(db.String(200))
    delivery_mode = db.Column(db.String(20), default=DELIVERY_DELIVERED_BY)
    form_data = db.Column(db.JSON, default=dict)
    tests = db.Column(db.JSON, default=list)
    date_received = db.Column(db.Date, default=lambda: datetime.utcnow().date())
    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    created_by = db.relationship('User')

    @property
    def certificate_prefix(self) -> str:
        """DL for samples delivered to the lab, PK for samples picked up."""
        return 'DL' if self.delivery_mode == DELIVERY_DELIVERED_BY else 'PK'

    @property
    def client_address(self) -> str:
        return (self.form_data or {}).get('client_address') or 'N/A'

    @property
    def client_contact(self) -> str:
        return (self.form_data or {}).get('client_contact') or 'N/A'

    def __repr__(self) -> str:
        return f'<Receipt {self.receipt_number}>'


class Invoice(db.Model):
    """Invoice raised for a receipt."""
    __tablename__ = 'invoices'

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(30), unique=True, nullable=False, index=True)
    receipt_id = db.Column(db.Integer, db.ForeignKey('receipts.id'), index=True)
    client_name = db.Column(db.String(150), nullable=False)
    project_title = db.Column(db.String(200))
    items = db.Column(db.JSON, default=list)
    subtotal = db.Column(db.Float, default=0.0)
    vat_rate = db.Column(db.Float, default=0.0)
    tax = db.Column(db.Float, default=0.0)
    total = db.Column(db.Float, default=0.0)
    amount_paid = db.Column(db.Float, default=0.0)
    status = db.Column(db.String(20), default=INVOICE_DRAFT, index=True)
    issue_date = db.Column(db.Date)
    due_date = db.Column(db.Date)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    receipt = db.relationship('Receipt', backref=db.backref('invoice', uselist=False))

    @property
    def status_color(self) -> str:
        return INVOICE_COLORS.get(self.status, 'secondary')

    @property
    def balance(self) -> float:
        return (self.total or 0.0) - (self.amount_paid or 0.0)

    def __repr__(self) -> str:
        return f'<Invoice {self.invoice_number} [{self.status}]>'
