"""Asset service: equipment register, calibration and maintenance scheduling."""

import logging
from datetime import date, timedelta

from flask import current_app

from app.extensions import db
from app.models import (
    Asset, AuditLog, CalibrationRecord, MaintenanceRecord,
    ASSET_STATUSES, CALIBRATION_RESULTS, MAINTENANCE_TYPES,
)
from app.services.errors import ValidationError
from utils.analysis.age_calculations import to_date

logger = logging.getLogger(__name__)

ASSET_FIELDS = [
    'name', 'tag_id', 'serial_number', 'category', 'status', 'location',
    'purchase_date', 'purchase_cost', 'vendor', 'warranty_expiry', 'assigned_to_id',
    'notes', 'requires_calibration', 'calibration_frequency_days',
    'next_calibration_date', 'maintenance_frequency_days', 'next_maintenance_date',
]


def is_due(next_date, today=None, window_days=30) -> bool:
    """True when the next date is within the window (overdue included)."""
    next_date = to_date(next_date)
    if next_date is None:
        return False
    today = today or date.today()
    return (next_date - today).days <= window_days


def _window():
    return current_app.config.get('DUE_SOON_DAYS', 30)


def _validate(data):
    if not (data.get('name') or '').strip():
        raise ValidationError('Asset name is required.')
    if data.get('status') and data['status'] not in ASSET_STATUSES:
        raise ValidationError(f"Unknown asset status: {data['status']}")
    tag = (data.get('tag_id') or '').strip()
    return tag or None


def create_asset(data, user, ip_address=None):
    """Create an asset from a dict of field values."""
    tag = _validate(data)
    if tag and Asset.query.filter_by(tag_id=tag).first():
        raise ValidationError(f'Tag {tag} is already in use.')
    asset = Asset(**{k: data[k] for k in ASSET_FIELDS if k in data})
    asset.tag_id = tag
    db.session.add(asset)
    db.session.flush()
    AuditLog.record(user, 'CREATE', 'assets', record_id=asset.id,
                    new_values={'name': asset.name, 'tag_id': asset.tag_id},
                    ip_address=ip_address)
    db.session.commit()
    return asset


def update_asset(asset, data, user, ip_address=None):
    """Update an asset's fields."""
    tag = _validate(data)
    if tag and tag != asset.tag_id and Asset.query.filter_by(tag_id=tag).first():
        raise ValidationError(f'Tag {tag} is already in use.')
    changed = {}
    for key in ASSET_FIELDS:
        if key in data and getattr(asset, key) != data[key]:
            changed[key] = str(data[key]) if data[key] is not None else None
            setattr(asset, key, data[key])
    asset.tag_id = tag
    AuditLog.record(user, 'UPDATE', 'assets', record_id=asset.id,
                    new_values=changed, ip_address=ip_address)
    db.session.commit()
    return asset


def delete_asset(asset, user, ip_address=None):
    AuditLog.record(user, 'DELETE', 'assets', record_id=asset.id,
                    old_values={'name': asset.name, 'tag_id': asset.tag_id},
                    ip_address=ip_address)
    db.session.delete(asset)
    db.session.commit()


def log_calibration(asset, data, user, ip_address=None):
    """Record a calibration and advance the next calibration date.

    data: dict with calibration_date, performed_by, certificate_number,
    result and notes.
    """
    calibration_date = to_date(data.get('calibration_date'))
    if calibration_date is None:
        raise ValidationError('Calibration date is required.')
    result = data.get('result') or CALIBRATION_RESULTS[0]
    if result not in CALIBRATION_RESULTS:
        raise ValidationError(f'Unknown calibration result: {result}')

    record = CalibrationRecord(
        asset_id=asset.id,
        calibration_date=calibration_date,
        performed_by=data.get('performed_by'),
        certificate_number=data.get('certificate_number'),
        result=result,
        notes=data.get('notes'),
        created_by_id=user.id,
    )
    db.session.add(record)
    if asset.calibration_frequency_days:
        asset.next_calibration_date = calibration_date + timedelta(
            days=asset.calibration_frequency_days)
    db.session.flush()
    AuditLog.record(user, 'CALIBRATE', 'assets', record_id=asset.id,
                    new_values={'calibration_date': calibration_date.isoformat(),
                                'result': result}, ip_address=ip_address)
    db.session.commit()
    logger.info('Calibration logged for asset %s (%s)', asset.tag_id or asset.id, result)
    return record


def log_maintenance(asset, data, user, ip_address=None):
    """Record a maintenance event and advance the next maintenance date."""
    maintenance_date = to_date(data.get('maintenance_date'))
    if maintenance_date is None:
        raise ValidationError('Maintenance date is required.')
    maintenance_type = data.get('maintenance_type') or MAINTENANCE_TYPES[0]
    if maintenance_type not in MAINTENANCE_TYPES:
        raise ValidationError(f'Unknown maintenance type: {maintenance_type}')

    record = MaintenanceRecord(
        asset_id=asset.id,
        maintenance_date=maintenance_date,
        maintenance_type=maintenance_type,
        performed_by=data.get('performed_by'),
        cost=data.get('cost'),
        description=data.get('description'),
        created_by_id=user.id,
    )
    db.session.add(record)
    if asset.maintenance_frequency_days:
        asset.next_maintenance_date = maintenance_date + timedelta(
            days=asset.maintenance_frequency_days)
    db.session.flush()
    AuditLog.record(user, 'MAINTAIN', 'assets', record_id=asset.id,
                    new_values={'maintenance_date': maintenance_date.isoformat(),
                                'maintenance_type': maintenance_type},
                    ip_address=ip_address)
    db.session.commit()
    return record


def calibration_due(today=None, window_days=None):
    """Calibrated assets whose next calibration falls within the window."""
    window_days = _window() if window_days is None else window_days
    assets = Asset.query.filter(Asset.requires_calibration.is_(True),
                                Asset.next_calibration_date.isnot(None))\
        .order_by(Asset.next_calibration_date.asc()).all()
    return [a for a in assets if is_due(a.next_calibration_date, today, window_days)]


def maintenance_due(today=None, window_days=None):
    """Assets whose next maintenance falls within the window."""
    window_days = _window() if window_days is None else window_days
    assets = Asset.query.filter(Asset.next_maintenance_date.isnot(None))\
        .order_by(Asset.next_maintenance_date.asc()).all()
    return [a for a in assets if is_due(a.next_maintenance_date, today, window_days)]
