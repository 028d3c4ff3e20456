"""Laboratory profile, compression machines and test catalogue."""
from datetime import datetime
from app.extensions import db


# Material categories that are tested through a register
CATEGORY_CONCRETE = 'concrete'
CATEGORY_PAVERS = 'pavers'
CATEGORY_CYLINDER = 'cylinder'
CATEGORY_BRICKS = 'bricks'
CATEGORY_BLOCKS = 'blocks'

REGISTER_CATEGORIES = [CATEGORY_CONCRETE, CATEGORY_PAVERS, CATEGORY_CYLINDER,
                       CATEGORY_BRICKS, CATEGORY_BLOCKS]

MATERIAL_CATEGORIES = REGISTER_CATEGORIES + ['soil', 'aggregates', 'steel', 'asphalt', 'other']


class Laboratory(db.Model):
    """Laboratory profile. A single row is used."""
    __tablename__ = 'laboratories'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, default='Materials Laboratory')
    address = db.Column(db.String(255))
    email = db.Column(db.String(120))
    phone = db.Column(db.String(40))
    receipt_sequence_start = db.Column(db.Integer, default=1)
    engineer_on_duty_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    engineer_on_duty = db.relationship('User', foreign_keys=[engineer_on_duty_id])

    @classmethod
    def get(cls) -> 'Laboratory':
        """Return the laboratory profile, creating a default one if needed."""
        lab = cls.query.order_by(cls.id).first()
        if lab is None:
            lab = cls(name='Materials Laboratory', receipt_sequence_start=1)
            db.session.add(lab)
            db.session.flush()
        return lab

    def __repr__(self) -> str:
        return f'<Laboratory {self.name}>'


class Machine(db.Model):
    """Compression testing machine with linear correction F' = m·F + c."""
    __tablename__ = 'machines'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    tag_id = db.Column(db.String(50), index=True)
    factor_m = db.Column(db.Float, nullable=False, default=1.0)
    factor_c = db.Column(db.Float, nullable=False, default=0.0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f'<Machine {self.tag_id or self.name}>'


class LabTest(db.Model):
    """Catalogue entry for a test offered by the laboratory."""
    __tablename__ = 'lab_tests'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    material_category = db.Column(db.String(40), nullable=False, index=True)
    method = db.Column(db.String(150))
    unit_price = db.Column(db.Float, default=0.0)
    is_active = db.Column(db.Boolean, default=True)

    def __repr__(self) -> str:
        return f'<LabTest {self.name}>'
