"""Register entry model for sample sets and the certificate approval workflow.

Workflow:
Pending Test -> Pending Initial Approval -> Pending Final Approval -> Approved
Initial rejection ends in Rejected; final rejection returns the entry to
Pending Initial Approval.
"""
from datetime import datetime
from app.extensions import db
from utils.analysis.age_calculations import format_age


# Register types
REGISTER_CONCRETE_CUBES = 'concrete_cubes'
REGISTER_PAVERS = 'pavers'
REGISTER_CYLINDERS = 'cylinders'
REGISTER_BRICKS_BLOCKS = 'bricks_blocks'
REGISTER_WATER_ABSORPTION = 'water_absorption'

REGISTER_TYPES = [REGISTER_CONCRETE_CUBES, REGISTER_PAVERS, REGISTER_CYLINDERS,
                  REGISTER_BRICKS_BLOCKS, REGISTER_WATER_ABSORPTION]

REGISTER_LABELS = {
    REGISTER_CONCRETE_CUBES: 'Concrete Cubes',
    REGISTER_PAVERS: 'Pavers',
    REGISTER_CYLINDERS: 'Cylinders',
    REGISTER_BRICKS_BLOCKS: 'Bricks & Blocks',
    REGISTER_WATER_ABSORPTION: 'Water Absorption',
}

# Workflow status constants
STATUS_PENDING_TEST = 'Pending Test'
STATUS_PENDING_INITIAL = 'Pending Initial Approval'
STATUS_PENDING_FINAL = 'Pending Final Approval'
STATUS_APPROVED = 'Approved'
STATUS_REJECTED = 'Rejected'

REGISTER_STATUSES = [STATUS_PENDING_TEST, STATUS_PENDING_INITIAL, STATUS_PENDING_FINAL,
                     STATUS_APPROVED, STATUS_REJECTED]

STATUS_COLORS = {
    STATUS_PENDING_TEST: 'secondary',
    STATUS_PENDING_INITIAL: 'warning',
    STATUS_PENDING_FINAL: 'info',
    STATUS_APPROVED: 'success',
    STATUS_REJECTED: 'danger',
}

# Block geometries
BLOCK_SOLID = 'solid'
BLOCK_HOLLOW = 'hollow'


class RegisterEntry(db.Model):
    """One sample set in a register.

    Attributes
    ----------
    register_type : str
        concrete_cubes, pavers, cylinders, bricks_blocks or water_absorption
    receipt_number : int
        Receipt the samples arrived on
    sample_ids : list of str
        Sample identifiers in the set
    results : list of dict
        Per-sample measurements (dimensions, weight, load, corrected load, ...)
    age : str
        Age at testing in days, or '>28'
    status : str
        Workflow status
    """
    __tablename__ = 'register_entries'

    id = db.Column(db.Integer, primary_key=True)
    register_type = db.Column(db.String(30), nullable=False, index=True)

    # Intake
    receipt_id = db.Column(db.Integer, db.ForeignKey('receipts.id'), index=True)
    receipt_number = db.Column(db.Integer, index=True)
    set_id = db.Column(db.Integer)
    date_received = db.Column(db.Date)
    client = db.Column(db.String(150))
    project = db.Column(db.String(200))
    sample_ids = db.Column(db.JSON, default=list)
    area_of_use = db.Column(db.String(150))
    certificate_number = db.Column(db.String(50), index=True)

    # Schedule
    casting_date = db.Column(db.Date)
    testing_date = db.Column(db.Date)
    age = db.Column(db.String(10))

    # Material-specific descriptors
    concrete_class = db.Column(db.String(50))
    paver_type = db.Column(db.String(80))
    paver_thickness = db.Column(db.String(40))
    pavers_per_square_metre = db.Column(db.Float)
    sample_type = db.Column(db.String(80))
    block_type = db.Column(db.String(20))  # solid / hollow
    mode_of_compaction = db.Column(db.String(80))

    # Test execution
    machine_id = db.Column(db.Integer, db.ForeignKey('machines.id'))
    temperature = db.Column(db.Float)
    results = db.Column(db.JSON, default=list)
    comment = db.Column(db.Text)
    technician = db.Column(db.String(120))
    technician_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    engineer_on_duty_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    date_of_issue = db.Column(db.DateTime)

    # Approval
    status = db.Column(db.String(30), default=STATUS_PENDING_TEST, index=True)
    approved_by_engineer_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    approved_by_engineer_at = db.Column(db.DateTime)
    approved_by_manager_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    approved_by_manager_at = db.Column(db.DateTime)
    rejected_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    rejected_at = db.Column(db.DateTime)
    rejection_reason = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    receipt = db.relationship('Receipt', backref=db.backref('register_entries', lazy='dynamic'))
    machine = db.relationship('Machine')
    technician_user = db.relationship('User', foreign_keys=[technician_id])
    engineer_on_duty = db.relationship('User', foreign_keys=[engineer_on_duty_id])
    approved_by_engineer = db.relationship('User', foreign_keys=[approved_by_engineer_id])
    approved_by_manager = db.relationship('User', foreign_keys=[approved_by_manager_id])
    rejected_by = db.relationship('User', foreign_keys=[rejected_by_id])

    @property
    def register_label(self) -> str:
        return REGISTER_LABELS.get(self.register_type, self.register_type)

    @property
    def status_color(self) -> str:
        """Get Bootstrap color class for status badge."""
        return STATUS_COLORS.get(self.status, 'secondary')

    @property
    def sample_count(self) -> int:
        return len(self.sample_ids or [])

    @property
    def age_display(self) -> str:
        return format_age(self.age)

    @property
    def is_hollow(self) -> bool:
        return self.block_type == BLOCK_HOLLOW

    @property
    def can_test(self) -> bool:
        """Results can be entered while pending test or after a rejection."""
        return self.status in [STATUS_PENDING_TEST, STATUS_REJECTED]

    @property
    def can_approve_initial(self) -> bool:
        return self.status == STATUS_PENDING_INITIAL

    @property
    def can_approve_final(self) -> bool:
        return self.status == STATUS_PENDING_FINAL

    @property
    def can_reject(self) -> bool:
        return self.status in [STATUS_PENDING_INITIAL, STATUS_PENDING_FINAL]

    @property
    def is_approved(self) -> bool:
        return self.status == STATUS_APPROVED

    def approve_initial(self, user) -> None:
        """Engineer approval."""
        self.status = STATUS_PENDING_FINAL
        self.approved_by_engineer_id = user.id
        self.approved_by_engineer_at = datetime.utcnow()

    def approve_final(self, user) -> None:
        """Manager approval; the certificate can be issued."""
        self.status = STATUS_APPROVED
        self.approved_by_manager_id = user.id
        self.approved_by_manager_at = datetime.utcnow()

    def reject(self, user, reason: str) -> None:
        """Reject at the current approval stage."""
        if self.status == STATUS_PENDING_FINAL:
            self.status = STATUS_PENDING_INITIAL
        else:
            self.status = STATUS_REJECTED
        self.rejected_by_id = user.id
        self.rejected_at = datetime.utcnow()
        self.rejection_reason = reason

    def __repr__(self) -> str:
        return f'<RegisterEntry {self.register_type} {self.certificate_number} [{self.status}]>'
