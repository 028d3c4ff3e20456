"""Certificate routes: listing, print view, approval and Word export."""
from datetime import datetime
from pathlib import Path

from flask import (render_template, redirect, url_for, flash, request,
                   current_app, send_file)
from flask_login import login_required, current_user
from sqlalchemy.exc import SQLAlchemyError

from . import certificates_bp
from .forms import ApprovalForm, RejectForm
from app.extensions import db
from app.models import (
    RegisterEntry, REGISTER_LABELS, REGISTER_STATUSES, STATUS_PENDING_TEST,
    permission_required
)
from app.services import ServiceError, approval_service, certificate_service
from utils.reporting import CertificateReportGenerator


@certificates_bp.route('/')
@login_required
@permission_required('certificates:read')
def index():
    """Tested register entries with filtering by status and search term."""
    status = request.args.get('status', '')
    search_term = request.args.get('search', '')

    query = RegisterEntry.query.filter(RegisterEntry.status != STATUS_PENDING_TEST)
    if status and status != 'All':
        query = query.filter(RegisterEntry.status == status)
    if search_term:
        pattern = f'%{search_term}%'
        query = query.filter(db.or_(
            RegisterEntry.certificate_number.ilike(pattern),
            RegisterEntry.client.ilike(pattern),
            RegisterEntry.project.ilike(pattern),
        ))
    entries = query.order_by(RegisterEntry.date_of_issue.desc(), RegisterEntry.id.desc()).all()

    return render_template('certificates/index.html', entries=entries,
                           statuses=REGISTER_STATUSES, status=status,
                           search_term=search_term, register_labels=REGISTER_LABELS)


@certificates_bp.route('/pending')
@login_required
@permission_required('certificates:read')
def pending():
    """Approval queues for the current user."""
    initial = approval_service.pending_initial() \
        if current_user.has_permission('certificates:approve-initial') else []
    final = approval_service.pending_final() \
        if current_user.has_permission('certificates:approve-final') else []
    return render_template('certificates/pending.html', initial=initial, final=final)


@certificates_bp.route('/<int:id>')
@login_required
@permission_required('certificates:read')
def view(id):
    """Print-ready certificate page."""
    entry = db.get_or_404(RegisterEntry, id)
    if entry.status == STATUS_PENDING_TEST:
        flash('No results have been entered for this entry yet.', 'warning')
        return redirect(url_for('registers.entry_view', id=entry.id))

    data = certificate_service.build_certificate(entry)
    return render_template('certificates/view.html', entry=entry, cert=data,
                           approve_form=ApprovalForm(), reject_form=RejectForm())


def _transition(id, action, success_message):
    entry = db.get_or_404(RegisterEntry, id)
    try:
        action(entry)
    except ServiceError as e:
        db.session.rollback()
        flash(str(e), 'warning')
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('Approval transition failed for %s', entry.certificate_number)
        flash('A database error occurred. Please try again.', 'danger')
    else:
        flash(success_message.format(number=entry.certificate_number), 'success')
    return redirect(url_for('certificates.view', id=id))


@certificates_bp.route('/<int:id>/approve-initial', methods=['POST'])
@login_required
@permission_required('certificates:approve-initial')
def approve_initial(id):
    """Engineer approval."""
    form = ApprovalForm()
    if not form.validate_on_submit():
        flash('Invalid request.', 'danger')
        return redirect(url_for('certificates.view', id=id))
    return _transition(
        id, lambda e: approval_service.approve_initial(e, current_user, request.remote_addr),
        '{number} sent for final approval.')


@certificates_bp.route('/<int:id>/approve-final', methods=['POST'])
@login_required
@permission_required('certificates:approve-final')
def approve_final(id):
    """Manager approval."""
    form = ApprovalForm()
    if not form.validate_on_submit():
        flash('Invalid request.', 'danger')
        return redirect(url_for('certificates.view', id=id))
    return _transition(
        id, lambda e: approval_service.approve_final(e, current_user, request.remote_addr),
        '{number} approved.')


@certificates_bp.route('/<int:id>/reject', methods=['POST'])
@login_required
@permission_required('certificates:reject')
def reject(id):
    """Reject at the current approval stage with a reason."""
    form = RejectForm()
    if not form.validate_on_submit():
        for error in form.reason.errors:
            flash(error, 'warning')
        return redirect(url_for('certificates.view', id=id))
    return _transition(
        id, lambda e: approval_service.reject(e, current_user, form.reason.data,
                                              request.remote_addr),
        '{number} rejected.')


@certificates_bp.route('/<int:id>/download-word')
@login_required
@permission_required('certificates:read')
def download_word(id):
    """Generate and download the certificate as a Word document."""
    entry = db.get_or_404(RegisterEntry, id)
    if entry.status == STATUS_PENDING_TEST:
        flash('No results have been entered for this entry yet.', 'warning')
        return redirect(url_for('registers.entry_view', id=entry.id))

    data = certificate_service.build_certificate(entry)

    reports_folder = Path(current_app.config['REPORTS_FOLDER'])
    reports_folder.mkdir(parents=True, exist_ok=True)
    safe_number = (entry.certificate_number or f'entry-{entry.id}').replace(' ', '_').replace('/', '-')
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    output_path = reports_folder / f'{safe_number}_{timestamp}.docx'

    generator = CertificateReportGenerator(
        signature_folder=Path(current_app.config['UPLOAD_FOLDER']))
    try:
        generator.generate_report(output_path, data)
    except OSError:
        current_app.logger.exception('Word export failed for %s', entry.certificate_number)
        flash('Report generation failed.', 'danger')
        return redirect(url_for('certificates.view', id=id))

    current_app.logger.info('Certificate %s exported by %s',
                            entry.certificate_number, current_user.username)
    return send_file(
        output_path,
        as_attachment=True,
        download_name=f'{safe_number}.docx',
        mimetype='application/vnd.openxmlformats-officedocument.wordprocessingml.document'
    )


# Context processor for pending approvals count in navbar
@certificates_bp.app_context_processor
def inject_pending_count():
    """Inject the number of certificates awaiting the user's approval."""
    if not current_user.is_authenticated:
        return {'pending_approvals_count': 0}
    count = 0
    if current_user.has_permission('certificates:approve-initial'):
        count += len(approval_service.pending_initial())
    if current_user.has_permission('certificates:approve-final'):
        count += len(approval_service.pending_final())
    return {'pending_approvals_count': count}
