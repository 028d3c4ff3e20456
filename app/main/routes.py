"""Main routes (dashboard)."""
from flask import render_template, redirect, url_for, flash, request
from flask_login import login_required, current_user

from . import main_bp
from app.extensions import db
from app.models import (
    AuditLog, Laboratory, RegisterEntry, User,
    REGISTER_LABELS, REGISTER_TYPES, STATUS_PENDING_TEST, permission_required
)
from app.services import approval_service, asset_service, project_service


@main_bp.route('/')
@login_required
def dashboard():
    """Main dashboard.

    Shows the user's tasks, approval queues and equipment falling due.
    """
    my_tasks = project_service.technician_tasks(current_user)

    pending_test = {
        rtype: RegisterEntry.query.filter_by(register_type=rtype,
                                             status=STATUS_PENDING_TEST).count()
        for rtype in REGISTER_TYPES
    }

    initial_queue = approval_service.pending_initial() \
        if current_user.has_permission('certificates:approve-initial') else []
    final_queue = approval_service.pending_final() \
        if current_user.has_permission('certificates:approve-final') else []
    unassigned = project_service.unassigned_tasks() \
        if current_user.has_permission('dashboard:assign-projects') else []

    calibration_due = asset_service.calibration_due()
    maintenance_due = asset_service.maintenance_due()

    lab = Laboratory.get()
    db.session.commit()
    users = User.query.filter_by(is_active=True).order_by(User.username).all() \
        if current_user.has_permission('dashboard:assign-engineer-on-duty') else []

    return render_template('main/dashboard.html',
                           my_tasks=my_tasks,
                           pending_test=pending_test,
                           register_labels=REGISTER_LABELS,
                           initial_queue=initial_queue,
                           final_queue=final_queue,
                           unassigned=unassigned,
                           technicians=project_service.assignable_technicians(),
                           calibration_due=calibration_due,
                           maintenance_due=maintenance_due,
                           lab=lab,
                           users=users)


@main_bp.route('/engineer-on-duty', methods=['POST'])
@login_required
@permission_required('dashboard:assign-engineer-on-duty')
def engineer_on_duty():
    """Set the engineer on duty recorded on new register entries."""
    lab = Laboratory.get()
    user_id = request.form.get('user_id', type=int)
    user = db.session.get(User, user_id) if user_id else None
    old = lab.engineer_on_duty_id
    lab.engineer_on_duty_id = user.id if user else None

    AuditLog.record(current_user, 'UPDATE', 'laboratories', record_id=lab.id,
                    old_values={'engineer_on_duty_id': old},
                    new_values={'engineer_on_duty_id': lab.engineer_on_duty_id},
                    ip_address=request.remote_addr)
    db.session.commit()

    flash(f'Engineer on duty: {user.display_name if user else "none"}.', 'success')
    return redirect(url_for('main.dashboard'))
