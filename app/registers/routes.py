"""Register routes: listings, test results entry and entry maintenance."""
from flask import render_template, redirect, url_for, flash, request, current_app, abort
from flask_login import login_required, current_user
from sqlalchemy.exc import SQLAlchemyError

from . import registers_bp
from .forms import ResultsEntryForm, MachineSelectForm, EntryMetadataForm
from app.extensions import db
from app.models import (
    Machine, RegisterEntry, REGISTER_TYPES, REGISTER_LABELS, REGISTER_STATUSES,
    REGISTER_BRICKS_BLOCKS, REGISTER_PAVERS, permission_required
)
from app.services import ServiceError, register_service
from utils.analysis.age_calculations import check_testing_date


def _machine_choices():
    machines = Machine.query.order_by(Machine.name).all()
    return [(0, '-- No machine --')] + [
        (m.id, f'{m.name} ({m.tag_id})' if m.tag_id else m.name) for m in machines
    ]


def _db_error(message):
    db.session.rollback()
    current_app.logger.exception(message)
    flash('A database error occurred. Please try again.', 'danger')


@registers_bp.route('/')
@login_required
@permission_required('registers:read')
def index():
    """Registers overview with entry counts per status."""
    counts = {}
    for rtype in REGISTER_TYPES:
        counts[rtype] = {
            status: RegisterEntry.query.filter_by(register_type=rtype, status=status).count()
            for status in REGISTER_STATUSES
        }
    return render_template('registers/index.html', counts=counts,
                           register_labels=REGISTER_LABELS, statuses=REGISTER_STATUSES)


@registers_bp.route('/<register_type>')
@login_required
@permission_required('registers:read')
def register_list(register_type):
    """All entries of one register, optionally filtered by status."""
    if register_type not in REGISTER_TYPES:
        abort(404)
    status = request.args.get('status') or None
    entries = register_service.list_entries(register_type, status)
    return render_template('registers/list.html', entries=entries,
                           register_type=register_type,
                           register_label=REGISTER_LABELS[register_type],
                           statuses=REGISTER_STATUSES, status=status)


@registers_bp.route('/entry/<int:id>')
@login_required
@permission_required('registers:read')
def entry_view(id):
    """Register entry detail with results and approval trail."""
    entry = db.get_or_404(RegisterEntry, id)
    machine_form = MachineSelectForm()
    machine_form.machine_id.choices = _machine_choices()
    machine_form.machine_id.data = entry.machine_id or 0
    return render_template('registers/entry_view.html', entry=entry,
                           machine_form=machine_form,
                           machine_corrected=entry.register_type in
                           register_service.MACHINE_CORRECTED_REGISTERS)


@registers_bp.route('/entry/<int:id>/test', methods=['GET', 'POST'])
@login_required
@permission_required('registers:test')
def entry_test(id):
    """Enter test results for a register entry."""
    entry = db.get_or_404(RegisterEntry, id)
    if not entry.can_test:
        flash(f'Results cannot be entered while the entry is {entry.status}.', 'warning')
        return redirect(url_for('registers.entry_view', id=entry.id))

    form = ResultsEntryForm()
    form.machine_id.choices = _machine_choices()

    if request.method == 'GET':
        previous = {r.get('sample_id'): r for r in entry.results or []}
        form.samples.pop_entry()
        for sample_id in entry.sample_ids or ['']:
            row = form.samples.append_entry().form
            row.sample_id.data = sample_id
            for key, value in previous.get(sample_id, {}).items():
                if isinstance(value, dict):
                    for part in ('l', 'w', 'no'):
                        if f'{key}_{part}' in row:
                            row[f'{key}_{part}'].data = value.get(part)
                elif key in row and key != 'sample_id':
                    row[key].data = value
        form.machine_id.data = entry.machine_id or 0
        form.temperature.data = entry.temperature if entry.temperature is not None \
            else current_app.config.get('DEFAULT_FACILITY_TEMPERATURE')
        form.paver_thickness.data = entry.paver_thickness or ''
        form.comment.data = entry.comment

    if form.validate_on_submit():
        with_holes = entry.register_type == REGISTER_BRICKS_BLOCKS and entry.is_hollow
        results = [row.form.to_result(with_holes) for row in form.samples
                   if row.form.has_data()]
        machine = db.session.get(Machine, form.machine_id.data) if form.machine_id.data else None
        try:
            register_service.submit_results(
                entry, results, current_user,
                machine=machine,
                temperature=form.temperature.data,
                override=form.override.data,
                paver_thickness=form.paver_thickness.data or None
                if entry.register_type == REGISTER_PAVERS else None,
                comment=form.comment.data or None,
                ip_address=request.remote_addr)
        except ServiceError as e:
            db.session.rollback()
            flash(str(e), 'warning')
        except SQLAlchemyError:
            _db_error('Failed to submit results')
        else:
            flash(f'Results for {entry.certificate_number} submitted for approval.', 'success')
            return redirect(url_for('registers.entry_view', id=entry.id))

    schedule = check_testing_date(entry.testing_date)
    return render_template('registers/entry_test.html', entry=entry, form=form,
                           schedule=schedule)


@registers_bp.route('/entry/<int:id>/edit', methods=['GET', 'POST'])
@login_required
@permission_required('registers:update')
def entry_edit(id):
    """Edit an entry's descriptive fields and schedule."""
    entry = db.get_or_404(RegisterEntry, id)
    form = EntryMetadataForm(obj=entry)

    if form.validate_on_submit():
        changes = {k: v for k, v in form.changes().items() if getattr(entry, k) != v}
        try:
            register_service.update_metadata(entry, changes, current_user,
                                             ip_address=request.remote_addr)
        except ServiceError as e:
            db.session.rollback()
            flash(str(e), 'danger')
        except SQLAlchemyError:
            _db_error('Failed to update register entry')
        else:
            flash(f'{entry.certificate_number} updated.', 'success')
            return redirect(url_for('registers.entry_view', id=entry.id))

    return render_template('registers/entry_edit.html', entry=entry, form=form)


@registers_bp.route('/entry/<int:id>/recalculate', methods=['POST'])
@login_required
@permission_required('registers:update')
def entry_recalculate(id):
    """Change the machine and recalculate every corrected load."""
    entry = db.get_or_404(RegisterEntry, id)
    form = MachineSelectForm()
    form.machine_id.choices = _machine_choices()
    if form.validate_on_submit():
        machine = db.session.get(Machine, form.machine_id.data) if form.machine_id.data else None
        try:
            register_service.recalculate_corrected_loads(entry, machine, current_user,
                                                         ip_address=request.remote_addr)
        except ServiceError as e:
            db.session.rollback()
            flash(str(e), 'warning')
        except SQLAlchemyError:
            _db_error('Failed to recalculate corrected loads')
        else:
            flash('Corrected loads recalculated.', 'success')
    return redirect(url_for('registers.entry_view', id=entry.id))


@registers_bp.route('/entry/<int:id>/delete', methods=['POST'])
@login_required
@permission_required('registers:delete')
def entry_delete(id):
    """Delete a register entry."""
    entry = db.get_or_404(RegisterEntry, id)
    register_type = entry.register_type
    try:
        register_service.delete_entry(entry, current_user, ip_address=request.remote_addr)
    except SQLAlchemyError:
        _db_error('Failed to delete register entry')
        return redirect(url_for('registers.entry_view', id=id))
    flash('Register entry deleted.', 'success')
    return redirect(url_for('registers.register_list', register_type=register_type))
