"""Audit trail model."""
from datetime import datetime
from app.extensions import db


class AuditLog(db.Model):
    """Audit log of data modifications.

    Records every write with user, timestamp, IP address and before/after values.
    """
    __tablename__ = 'audit_log'

    id = db.Column(db.Integer, primary_key=True)
    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    ip_address = db.Column(db.String(45))

    action = db.Column(db.String(30), nullable=False)  # CREATE, UPDATE, APPROVE, ...
    table_name = db.Column(db.String(50))
    record_id = db.Column(db.Integer)

    old_values = db.Column(db.JSON)
    new_values = db.Column(db.JSON)
    reason = db.Column(db.Text)

    # Relationship
    user = db.relationship('User', backref='audit_logs')

    @classmethod
    def record(cls, user, action: str, table_name: str, record_id=None,
               old_values=None, new_values=None, reason=None, ip_address=None):
        """Add an audit entry to the current session (committed by the caller)."""
        entry = cls(
            user_id=getattr(user, 'id', None),
            action=action,
            table_name=table_name,
            record_id=record_id,
            old_values=old_values,
            new_values=new_values,
            reason=reason,
            ip_address=ip_address,
        )
        db.session.add(entry)
        return entry

    def __repr__(self) -> str:
        return f'<AuditLog {self.action} {self.table_name}:{self.record_id}>'
