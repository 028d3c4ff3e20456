"""Asset register routes."""
from flask import render_template, redirect, url_for, flash, request, current_app
from flask_login import login_required, current_user
from sqlalchemy.exc import SQLAlchemyError

from . import assets_bp
from .forms import AssetForm, CalibrationForm, MaintenanceForm
from app.extensions import db
from app.models import Asset, ASSET_STATUSES, User, permission_required
from app.services import ServiceError, asset_service


def _user_choices():
    users = User.query.filter_by(is_active=True).order_by(User.full_name).all()
    return [(0, '-- Nobody --')] + [(u.id, u.display_name) for u in users]


def _save(action, success_message):
    """Run a service call; returns the result, or None after flashing the failure."""
    try:
        result = action()
    except ServiceError as e:
        db.session.rollback()
        flash(str(e), 'danger')
        return None
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('Asset update failed')
        flash('A database error occurred. Please try again.', 'danger')
        return None
    flash(success_message, 'success')
    return result


@assets_bp.route('/')
@login_required
@permission_required('assets:read')
def index():
    """List assets, optionally by status."""
    status = request.args.get('status', '')
    query = Asset.query
    if status and status != 'All':
        query = query.filter_by(status=status)
    assets = query.order_by(Asset.name).all()
    return render_template('assets/index.html', assets=assets, statuses=ASSET_STATUSES,
                           status=status)


@assets_bp.route('/due')
@login_required
@permission_required('assets:read')
def due():
    """Calibration and maintenance falling due (overdue included)."""
    return render_template('assets/due.html',
                           calibration_due=asset_service.calibration_due(),
                           maintenance_due=asset_service.maintenance_due(),
                           window_days=current_app.config.get('DUE_SOON_DAYS', 30))


@assets_bp.route('/new', methods=['GET', 'POST'])
@login_required
@permission_required('assets:create')
def create():
    form = AssetForm()
    form.assigned_to_id.choices = _user_choices()
    if form.validate_on_submit():
        asset = _save(lambda: asset_service.create_asset(form.to_data(), current_user,
                                                         request.remote_addr),
                      f'Asset {form.name.data} created.')
        if asset is not None:
            return redirect(url_for('assets.view', id=asset.id))
    return render_template('assets/form.html', form=form, title='New Asset')


@assets_bp.route('/<int:id>')
@login_required
@permission_required('assets:read')
def view(id):
    """Asset with calibration and maintenance history."""
    asset = db.get_or_404(Asset, id)
    return render_template('assets/view.html', asset=asset,
                           calibrations=asset.calibrations.all(),
                           maintenance_records=asset.maintenance_records.all(),
                           calibration_form=CalibrationForm(),
                           maintenance_form=MaintenanceForm())


@assets_bp.route('/<int:id>/edit', methods=['GET', 'POST'])
@login_required
@permission_required('assets:update')
def edit(id):
    asset = db.get_or_404(Asset, id)
    form = AssetForm(obj=asset)
    form.assigned_to_id.choices = _user_choices()
    if request.method == 'GET':
        form.assigned_to_id.data = asset.assigned_to_id or 0
    if form.validate_on_submit():
        if _save(lambda: asset_service.update_asset(asset, form.to_data(), current_user,
                                                    request.remote_addr),
                 f'Asset {asset.name} updated.') is not None:
            return redirect(url_for('assets.view', id=asset.id))
    return render_template('assets/form.html', form=form, asset=asset,
                           title=f'Edit Asset: {asset.name}')


@assets_bp.route('/<int:id>/delete', methods=['POST'])
@login_required
@permission_required('assets:delete')
def delete(id):
    asset = db.get_or_404(Asset, id)
    name = asset.name
    try:
        asset_service.delete_asset(asset, current_user, request.remote_addr)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('Asset delete failed')
        flash('A database error occurred. Please try again.', 'danger')
        return redirect(url_for('assets.view', id=id))
    flash(f'Asset {name} deleted.', 'success')
    return redirect(url_for('assets.index'))


@assets_bp.route('/<int:id>/calibrate', methods=['POST'])
@login_required
@permission_required('assets:update')
def calibrate(id):
    """Log a calibration and advance the next calibration date."""
    asset = db.get_or_404(Asset, id)
    form = CalibrationForm()
    if form.validate_on_submit():
        data = {k: form[k].data for k in ('calibration_date', 'performed_by',
                                          'certificate_number', 'result', 'notes')}
        _save(lambda: asset_service.log_calibration(asset, data, current_user,
                                                    request.remote_addr),
              'Calibration logged.')
    else:
        flash('Calibration date is required.', 'warning')
    return redirect(url_for('assets.view', id=id))


@assets_bp.route('/<int:id>/maintain', methods=['POST'])
@login_required
@permission_required('assets:update')
def maintain(id):
    """Log maintenance and advance the next maintenance date."""
    asset = db.get_or_404(Asset, id)
    form = MaintenanceForm()
    if form.validate_on_submit():
        data = {k: form[k].data for k in ('maintenance_date', 'maintenance_type',
                                          'performed_by', 'cost', 'description')}
        _save(lambda: asset_service.log_maintenance(asset, data, current_user,
                                                    request.remote_addr),
              'Maintenance logged.')
    else:
        flash('Maintenance date is required.', 'warning')
    return redirect(url_for('assets.view', id=id))
