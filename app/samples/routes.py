"""Sample receipt routes."""
from flask import render_template, redirect, url_for, flash, request, current_app
from flask_login import login_required, current_user
from sqlalchemy.exc import SQLAlchemyError

from . import samples_bp
from .forms import ReceiveSamplesForm
from app.extensions import db
from app.models import LabTest, Receipt, RegisterEntry, DELIVERY_LABELS, permission_required
from app.services import ServiceError, receipt_service


def _test_choices():
    tests = LabTest.query.filter_by(is_active=True)\
        .order_by(LabTest.material_category, LabTest.name).all()
    return [(0, '-- Select test --')] + [
        (t.id, f'{t.material_category.title()}: {t.name}') for t in tests
    ]


def _selections(form):
    """Selected tests with their sample sets, skipping blank rows."""
    selections = []
    for row in form.tests:
        test_id = row.form.test_id.data
        if not test_id:
            continue
        test = db.session.get(LabTest, test_id)
        if test is None:
            continue
        sets = [s.form.to_dict() for s in row.form.sets]
        sets = [s for s in sets if s['sample_ids'] or s['casting_date'] or s['testing_date']]
        selections.append({'test': test, 'quantity': row.form.quantity.data, 'sets': sets})
    return selections


@samples_bp.route('/receive', methods=['GET', 'POST'])
@login_required
@permission_required('samples:receive')
def receive():
    """Receive samples: receipt, register entries, project and draft invoice."""
    form = ReceiveSamplesForm()

    # Extra rows are requested with ?tests=N&sets=M
    if request.method == 'GET':
        for _ in range(max(request.args.get('tests', 1, type=int), 1) - 1):
            form.tests.append_entry()
        extra_sets = max(request.args.get('sets', 1, type=int), 1) - 1
        for row in form.tests:
            for _ in range(extra_sets):
                row.form.sets.append_entry()
    form.set_test_choices(_test_choices())

    if form.validate_on_submit():
        try:
            receipt = receipt_service.create_receipt(
                form.to_data(), _selections(form), current_user,
                ip_address=request.remote_addr)
        except ServiceError as e:
            db.session.rollback()
            flash(str(e), 'danger')
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception('Failed to create receipt')
            flash('Could not save the receipt. Please try again.', 'danger')
        else:
            flash(f'Receipt {receipt.receipt_number} created successfully!', 'success')
            return redirect(url_for('samples.receipt_view', id=receipt.id))

    return render_template('samples/receive.html', form=form,
                           next_number=receipt_service.next_receipt_number())


@samples_bp.route('/receipts')
@login_required
@permission_required('receipts:read')
def receipts():
    """List receipts, newest first."""
    receipts = Receipt.query.order_by(Receipt.receipt_number.desc()).all()
    return render_template('samples/receipts.html', receipts=receipts,
                           delivery_labels=DELIVERY_LABELS)


@samples_bp.route('/receipts/<int:id>')
@login_required
@permission_required('receipts:read')
def receipt_view(id):
    """Receipt with its register entries and invoice."""
    receipt = db.get_or_404(Receipt, id)
    entries = receipt.register_entries.order_by(RegisterEntry.set_id).all()
    return render_template('samples/receipt_view.html', receipt=receipt, entries=entries,
                           delivery_labels=DELIVERY_LABELS)
