"""Two-stage certificate approval: engineer, then laboratory manager."""

import logging

from app.extensions import db
from app.models import (
    AuditLog, RegisterEntry,
    STATUS_PENDING_FINAL, STATUS_PENDING_INITIAL,
)
from app.services.errors import WorkflowError

logger = logging.getLogger(__name__)


def _require_signature(user):
    if not user.has_signature:
        raise WorkflowError('Upload your signature before approving certificates.')


def approve_initial(entry, user, ip_address=None):
    """Engineer approval: Pending Initial Approval -> Pending Final Approval."""
    if not entry.can_approve_initial:
        raise WorkflowError(f'{entry.certificate_number} is not awaiting initial approval.')
    _require_signature(user)

    entry.approve_initial(user)
    AuditLog.record(user, 'APPROVE_INITIAL', 'register_entries', record_id=entry.id,
                    old_values={'status': STATUS_PENDING_INITIAL},
                    new_values={'status': entry.status}, ip_address=ip_address)
    db.session.commit()
    logger.info('%s initially approved by %s', entry.certificate_number, user.username)
    return entry


def approve_final(entry, user, ip_address=None):
    """Manager approval: Pending Final Approval -> Approved."""
    if not entry.can_approve_final:
        raise WorkflowError(f'{entry.certificate_number} is not awaiting final approval.')
    _require_signature(user)

    entry.approve_final(user)
    AuditLog.record(user, 'APPROVE_FINAL', 'register_entries', record_id=entry.id,
                    old_values={'status': STATUS_PENDING_FINAL},
                    new_values={'status': entry.status}, ip_address=ip_address)
    db.session.commit()
    logger.info('%s approved by %s', entry.certificate_number, user.username)
    return entry


def reject(entry, user, reason, ip_address=None):
    """Reject at the current stage.

    A final-stage rejection returns the entry to initial approval; an
    initial-stage rejection marks it Rejected so results can be re-entered.
    """
    if not entry.can_reject:
        raise WorkflowError(f'{entry.certificate_number} is not awaiting approval.')
    reason = (reason or '').strip()
    if not reason:
        raise WorkflowError('Please provide a reason for rejection.')

    old_status = entry.status
    entry.reject(user, reason)
    AuditLog.record(user, 'REJECT', 'register_entries', record_id=entry.id,
                    old_values={'status': old_status},
                    new_values={'status': entry.status}, reason=reason,
                    ip_address=ip_address)
    db.session.commit()
    logger.info('%s rejected by %s (%s -> %s)', entry.certificate_number,
                user.username, old_status, entry.status)
    return entry


def pending_initial():
    """Entries awaiting engineer approval, oldest first."""
    return RegisterEntry.query.filter_by(status=STATUS_PENDING_INITIAL)\
        .order_by(RegisterEntry.date_of_issue.asc()).all()


def pending_final():
    """Entries awaiting manager approval, oldest first."""
    return RegisterEntry.query.filter_by(status=STATUS_PENDING_FINAL)\
        .order_by(RegisterEntry.approved_by_engineer_at.asc()).all()
