"""Equipment asset register with calibration and maintenance logs."""
from datetime import datetime
from app.extensions import db


ASSET_ACTIVE = 'Active'
ASSET_IN_REPAIR = 'In Repair'
ASSET_UNDER_MAINTENANCE = 'Under Maintenance'
ASSET_DECOMMISSIONED = 'Decommissioned'
ASSET_LOST = 'Lost/Stolen'

ASSET_STATUSES = [ASSET_ACTIVE, ASSET_IN_REPAIR, ASSET_UNDER_MAINTENANCE,
                  ASSET_DECOMMISSIONED, ASSET_LOST]

ASSET_STATUS_COLORS = {
    ASSET_ACTIVE: 'success',
    ASSET_IN_REPAIR: 'warning',
    ASSET_UNDER_MAINTENANCE: 'info',
    ASSET_DECOMMISSIONED: 'secondary',
    ASSET_LOST: 'danger',
}

ASSET_CATEGORIES = [
    'Compression Machine', 'Balance', 'Oven', 'Curing Tank', 'Sieve',
    'Measuring Instrument', 'IT Equipment', 'Vehicle', 'Furniture', 'Other',
]

CALIBRATION_PASSED = 'Passed'
CALIBRATION_PASSED_REMARKS = 'Passed with Remarks'
CALIBRATION_FAILED = 'Failed'
CALIBRATION_RESULTS = [CALIBRATION_PASSED, CALIBRATION_PASSED_REMARKS, CALIBRATION_FAILED]

MAINTENANCE_TYPES = ['Preventive', 'Corrective', 'Inspection', 'Upgrade']


class Asset(db.Model):
    """Laboratory equipment record with calibration/maintenance schedule."""
    __tablename__ = 'assets'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    tag_id = db.Column(db.String(50), unique=True, index=True)
    serial_number = db.Column(db.String(80))
    category = db.Column(db.String(60))
    status = db.Column(db.String(30), default=ASSET_ACTIVE, index=True)
    location = db.Column(db.String(120))
    purchase_date = db.Column(db.Date)
    purchase_cost = db.Column(db.Float)
    vendor = db.Column(db.String(150))
    warranty_expiry = db.Column(db.Date)
    assigned_to_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    notes = db.Column(db.Text)

    requires_calibration = db.Column(db.Boolean, default=False)
    calibration_frequency_days = db.Column(db.Integer)
    next_calibration_date = db.Column(db.Date)
    maintenance_frequency_days = db.Column(db.Integer)
    next_maintenance_date = db.Column(db.Date)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    assigned_to = db.relationship('User')
    calibrations = db.relationship('CalibrationRecord', backref='asset', lazy='dynamic',
                                   cascade='all, delete-orphan',
                                   order_by='CalibrationRecord.calibration_date.desc()')
    maintenance_records = db.relationship('MaintenanceRecord', backref='asset', lazy='dynamic',
                                          cascade='all, delete-orphan',
                                          order_by='MaintenanceRecord.maintenance_date.desc()')

    @property
    def status_color(self) -> str:
        return ASSET_STATUS_COLORS.get(self.status, 'secondary')

    def __repr__(self) -> str:
        return f'<Asset {self.tag_id or self.name}>'


class CalibrationRecord(db.Model):
    """Calibration event for an asset."""
    __tablename__ = 'calibration_records'

    id = db.Column(db.Integer, primary_key=True)
    asset_id = db.Column(db.Integer, db.ForeignKey('assets.id'), nullable=False, index=True)
    calibration_date = db.Column(db.Date, nullable=False)
    performed_by = db.Column(db.String(150))
    certificate_number = db.Column(db.String(80))
    result = db.Column(db.String(30), default=CALIBRATION_PASSED)
    notes = db.Column(db.Text)
    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f'<CalibrationRecord {self.asset_id} {self.calibration_date} {self.result}>'


class MaintenanceRecord(db.Model):
    """Maintenance event for an asset."""
    __tablename__ = 'maintenance_records'

    id = db.Column(db.Integer, primary_key=True)
    asset_id = db.Column(db.Integer, db.ForeignKey('assets.id'), nullable=False, index=True)
    maintenance_date = db.Column(db.Date, nullable=False)
    maintenance_type = db.Column(db.String(30), default='Preventive')
    performed_by = db.Column(db.String(150))
    cost = db.Column(db.Float)
    description = db.Column(db.Text)
    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f'<MaintenanceRecord {self.asset_id} {self.maintenance_date} {self.maintenance_type}>'
