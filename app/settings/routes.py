"""Settings routes: laboratory profile, machines and test catalogue."""
from flask import render_template, redirect, url_for, flash, request, current_app
from flask_login import login_required, current_user
from sqlalchemy.exc import SQLAlchemyError

from . import settings_bp
from .forms import LaboratoryForm, MachineForm, LabTestForm, CatalogueImportForm
from app.extensions import db
from app.models import AuditLog, Laboratory, LabTest, Machine, User, permission_required
from app.services.catalogue_import import CatalogueImporter


def _commit(success_message):
    """Commit the session; flash and log on failure. Returns True on success."""
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('Settings update failed')
        flash('A database error occurred. Please try again.', 'danger')
        return False
    flash(success_message, 'success')
    return True


@settings_bp.route('/')
@login_required
@permission_required('settings:read')
def index():
    """Settings overview."""
    lab = Laboratory.get()
    db.session.commit()
    return render_template('settings/index.html', lab=lab,
                           machines=Machine.query.order_by(Machine.name).all(),
                           tests=LabTest.query.order_by(LabTest.material_category,
                                                        LabTest.name).all())


@settings_bp.route('/laboratory', methods=['GET', 'POST'])
@login_required
@permission_required('settings:laboratory:update')
def laboratory():
    """Edit the laboratory profile."""
    lab = Laboratory.get()
    form = LaboratoryForm(obj=lab)
    form.engineer_on_duty_id.choices = [(0, '-- None --')] + [
        (u.id, u.display_name)
        for u in User.query.filter_by(is_active=True).order_by(User.full_name).all()
    ]
    if request.method == 'GET':
        form.engineer_on_duty_id.data = lab.engineer_on_duty_id or 0

    if form.validate_on_submit():
        old_values = {'name': lab.name, 'address': lab.address, 'email': lab.email,
                      'phone': lab.phone, 'receipt_sequence_start': lab.receipt_sequence_start,
                      'engineer_on_duty_id': lab.engineer_on_duty_id}
        lab.name = form.name.data
        lab.address = form.address.data or None
        lab.email = form.email.data or None
        lab.phone = form.phone.data or None
        lab.receipt_sequence_start = form.receipt_sequence_start.data
        lab.engineer_on_duty_id = form.engineer_on_duty_id.data or None
        AuditLog.record(current_user, 'UPDATE', 'laboratories', record_id=lab.id,
                        old_values=old_values,
                        new_values={'name': lab.name, 'address': lab.address,
                                    'email': lab.email, 'phone': lab.phone,
                                    'receipt_sequence_start': lab.receipt_sequence_start,
                                    'engineer_on_duty_id': lab.engineer_on_duty_id},
                        ip_address=request.remote_addr)
        if _commit('Laboratory profile saved.'):
            return redirect(url_for('settings.index'))

    return render_template('settings/laboratory.html', form=form, lab=lab)


@settings_bp.route('/machines/new', methods=['GET', 'POST'])
@login_required
@permission_required('settings:machines:update')
def machine_create():
    form = MachineForm()
    if form.validate_on_submit():
        machine = Machine(name=form.name.data, tag_id=form.tag_id.data or None,
                          factor_m=form.factor_m.data, factor_c=form.factor_c.data or 0.0)
        db.session.add(machine)
        db.session.flush()
        AuditLog.record(current_user, 'CREATE', 'machines', record_id=machine.id,
                        new_values={'name': machine.name, 'factor_m': machine.factor_m,
                                    'factor_c': machine.factor_c},
                        ip_address=request.remote_addr)
        if _commit(f'Machine {machine.name} added.'):
            return redirect(url_for('settings.index'))
    return render_template('settings/machine_form.html', form=form, title='Add Machine')


@settings_bp.route('/machines/<int:id>/edit', methods=['GET', 'POST'])
@login_required
@permission_required('settings:machines:update')
def machine_edit(id):
    """Edit a machine's correction factors.

    Existing results keep their corrected loads until recalculated from the
    register entry.
    """
    machine = db.get_or_404(Machine, id)
    form = MachineForm(obj=machine)
    if form.validate_on_submit():
        old_values = {'name': machine.name, 'factor_m': machine.factor_m,
                      'factor_c': machine.factor_c}
        machine.name = form.name.data
        machine.tag_id = form.tag_id.data or None
        machine.factor_m = form.factor_m.data
        machine.factor_c = form.factor_c.data or 0.0
        AuditLog.record(current_user, 'UPDATE', 'machines', record_id=machine.id,
                        old_values=old_values,
                        new_values={'name': machine.name, 'factor_m': machine.factor_m,
                                    'factor_c': machine.factor_c},
                        ip_address=request.remote_addr)
        if _commit(f'Machine {machine.name} updated.'):
            return redirect(url_for('settings.index'))
    return render_template('settings/machine_form.html', form=form, machine=machine,
                           title=f'Edit Machine: {machine.name}')


@settings_bp.route('/machines/<int:id>/delete', methods=['POST'])
@login_required
@permission_required('settings:machines:update')
def machine_delete(id):
    machine = db.get_or_404(Machine, id)
    AuditLog.record(current_user, 'DELETE', 'machines', record_id=machine.id,
                    old_values={'name': machine.name, 'factor_m': machine.factor_m,
                                'factor_c': machine.factor_c},
                    ip_address=request.remote_addr)
    db.session.delete(machine)
    _commit('Machine deleted.')
    return redirect(url_for('settings.index'))


@settings_bp.route('/tests/new', methods=['GET', 'POST'])
@login_required
@permission_required('settings:tests:update')
def test_create():
    form = LabTestForm()
    if form.validate_on_submit():
        test = LabTest(name=form.name.data, material_category=form.material_category.data,
                       method=form.method.data or None, unit_price=form.unit_price.data or 0.0,
                       is_active=form.is_active.data)
        db.session.add(test)
        db.session.flush()
        AuditLog.record(current_user, 'CREATE', 'lab_tests', record_id=test.id,
                        new_values={'name': test.name, 'category': test.material_category,
                                    'unit_price': test.unit_price},
                        ip_address=request.remote_addr)
        if _commit(f'Test {test.name} added.'):
            return redirect(url_for('settings.index'))
    return render_template('settings/test_form.html', form=form, title='Add Test')


@settings_bp.route('/tests/<int:id>/edit', methods=['GET', 'POST'])
@login_required
@permission_required('settings:tests:update')
def test_edit(id):
    test = db.get_or_404(LabTest, id)
    form = LabTestForm(obj=test)
    if form.validate_on_submit():
        old_values = {'name': test.name, 'unit_price': test.unit_price,
                      'is_active': test.is_active}
        form.populate_obj(test)
        test.unit_price = test.unit_price or 0.0
        AuditLog.record(current_user, 'UPDATE', 'lab_tests', record_id=test.id,
                        old_values=old_values,
                        new_values={'name': test.name, 'unit_price': test.unit_price,
                                    'is_active': test.is_active},
                        ip_address=request.remote_addr)
        if _commit(f'Test {test.name} updated.'):
            return redirect(url_for('settings.index'))
    return render_template('settings/test_form.html', form=form, test=test,
                           title=f'Edit Test: {test.name}')


@settings_bp.route('/tests/import', methods=['GET', 'POST'])
@login_required
@permission_required('settings:tests:update')
def test_import():
    """Create or update catalogue tests from an Excel or CSV price list."""
    form = CatalogueImportForm()
    if form.validate_on_submit():
        upload = form.file.data
        try:
            results = CatalogueImporter.import_tests(upload.stream, upload.filename,
                                                     current_user, request.remote_addr)
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception('Catalogue import failed')
            flash('A database error occurred. Please try again.', 'danger')
            return redirect(url_for('settings.test_import'))

        for error in results['errors'][:5]:
            flash(error, 'warning')
        flash(f"Import complete: {results['created']} tests created, "
              f"{results['updated']} updated.", 'success')
        return redirect(url_for('settings.index'))
    return render_template('settings/test_import.html', form=form)
