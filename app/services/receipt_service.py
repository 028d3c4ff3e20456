"""Sample intake service: receipts, register entries, projects and draft invoices."""

import logging
from datetime import date, timedelta

from flask import current_app
from sqlalchemy import func

from app.extensions import db
from app.models import (
    AuditLog, Invoice, Laboratory, Project, ProjectTask, Receipt, RegisterEntry,
    DELIVERY_DELIVERED_BY, DELIVERY_MODES, INVOICE_DRAFT, REGISTER_CATEGORIES,
    REGISTER_BRICKS_BLOCKS, REGISTER_CONCRETE_CUBES, REGISTER_CYLINDERS,
    REGISTER_PAVERS, REGISTER_WATER_ABSORPTION, STATUS_PENDING_TEST,
)
from app.services.errors import ValidationError
from app.services.finance_service import price_items
from utils.analysis.age_calculations import calculate_age, to_date

logger = logging.getLogger(__name__)

_CATEGORY_REGISTERS = {
    'concrete': REGISTER_CONCRETE_CUBES,
    'pavers': REGISTER_PAVERS,
    'cylinder': REGISTER_CYLINDERS,
    'bricks': REGISTER_BRICKS_BLOCKS,
    'blocks': REGISTER_BRICKS_BLOCKS,
}


def next_receipt_number():
    """Next receipt number: the larger of the lab's sequence start and last + 1."""
    lab = Laboratory.get()
    start = lab.receipt_sequence_start or 1
    last = db.session.query(func.max(Receipt.receipt_number)).scalar()
    if last is None:
        return start
    return max(start, last + 1)


def register_type_for(category, test_name):
    """Register a test's sample sets are entered in, None when not tracked."""
    if 'water absorption' in (test_name or '').lower():
        return REGISTER_WATER_ABSORPTION
    return _CATEGORY_REGISTERS.get((category or '').strip().lower())


def apply_set_dates(casting_date, testing_date, age=None):
    """Normalize a sample set's schedule.

    Parameters
    ----------
    casting_date, testing_date : date-like
        Dates entered for the set
    age : int, optional
        Requested age in days; sets the testing date from the casting date

    Returns
    -------
    tuple
        (casting date, testing date, age text). Testing earlier than casting
        is moved to the casting date. Age text is '' when a date is missing.
    """
    casting = to_date(casting_date)
    testing = to_date(testing_date)
    if casting is not None and age not in (None, ''):
        try:
            testing = casting + timedelta(days=int(age))
        except (TypeError, ValueError):
            pass
    if casting is not None and testing is not None and testing < casting:
        testing = casting
    return casting, testing, str(calculate_age(casting, testing))


def validate_receipt_data(data):
    """Check the intake form rules, raising ValidationError on the first failure."""
    if not (data.get('client_name') or '').strip():
        raise ValidationError('Client name is required.')
    if data.get('delivery_mode', DELIVERY_DELIVERED_BY) not in DELIVERY_MODES:
        raise ValidationError('Unknown delivery mode.')
    if data.get('delivery_mode', DELIVERY_DELIVERED_BY) == DELIVERY_DELIVERED_BY \
            and not (data.get('delivery_person') or '').strip():
        raise ValidationError("Deliverer's name is required.")
    if not data.get('is_billing_client_same', True) \
            and not (data.get('billing_client_name') or '').strip():
        raise ValidationError('Billing client name is required.')
    modes = data.get('transmittal_modes') or {}
    if not any(modes.get(key) for key in ('email', 'whatsapp', 'hardcopy')):
        raise ValidationError('At least one transmittal mode must be selected.')
    if modes.get('email') and not data.get('transmittal_email'):
        raise ValidationError('Email is required.')
    if modes.get('whatsapp') and not data.get('transmittal_whatsapp'):
        raise ValidationError('WhatsApp number is required.')


def _set_sample_count(sample_set):
    return len(sample_set.get('sample_ids') or []) or int(sample_set.get('quantity') or 0)


def _serialize_date(value):
    return value.isoformat() if value else None


def create_receipt(data, selections, user, ip_address=None):
    """Receive samples and create everything that follows from the intake.

    Parameters
    ----------
    data : dict
        Intake form data (client, project, delivery and transmittal details)
    selections : list of dict
        One item per selected test: ``{'test': LabTest, 'quantity': int,
        'sets': [set dict, ...]}``. A set dict holds ``sample_ids`` and the
        schedule/descriptor fields of the register entry.
    user : User
        Receiving user

    Returns
    -------
    Receipt
        The committed receipt, with register entries, project and invoice
    """
    validate_receipt_data(data)
    if not selections:
        raise ValidationError('Select at least one test.')

    receipt_number = next_receipt_number()
    date_received = to_date(data.get('date_received')) or date.today()
    receipt = Receipt(
        receipt_number=receipt_number,
        client_name=data['client_name'].strip(),
        project_title=data.get('project_title'),
        delivery_mode=data.get('delivery_mode', DELIVERY_DELIVERED_BY),
        form_data={k: v for k, v in data.items() if k != 'date_received'},
        date_received=date_received,
        created_by_id=user.id,
    )
    db.session.add(receipt)
    db.session.flush()

    lab = Laboratory.get()
    snapshot = []
    set_counter = 0
    entries = []
    for selection in selections:
        test = selection['test']
        sets = selection.get('sets') or []
        quantity = int(selection.get('quantity') or sum(_set_sample_count(s) for s in sets))
        register_type = register_type_for(test.material_category, test.name)

        test_snapshot = {
            'test_id': test.id,
            'test_name': test.name,
            'category': test.material_category,
            'quantity': quantity,
            'unit_price': test.unit_price or 0.0,
            'sets': [],
        }

        for sample_set in sets:
            set_counter += 1
            casting, testing, age = apply_set_dates(
                sample_set.get('casting_date'), sample_set.get('testing_date'),
                sample_set.get('age'))
            test_snapshot['sets'].append({
                'set_id': set_counter,
                'sample_ids': list(sample_set.get('sample_ids') or []),
                'casting_date': _serialize_date(casting),
                'testing_date': _serialize_date(testing),
                'age': age,
            })
            if register_type is None:
                continue

            entry = RegisterEntry(
                register_type=register_type,
                receipt_id=receipt.id,
                receipt_number=receipt_number,
                set_id=set_counter,
                date_received=date_received,
                client=receipt.client_name,
                project=receipt.project_title,
                sample_ids=list(sample_set.get('sample_ids') or []),
                area_of_use=sample_set.get('area_of_use'),
                casting_date=casting,
                testing_date=testing,
                age=age or None,
                certificate_number=f'{receipt.certificate_prefix}-{receipt_number}-{set_counter:02d}',
                status=STATUS_PENDING_TEST,
                engineer_on_duty_id=lab.engineer_on_duty_id,
                results=[],
            )
            if register_type in (REGISTER_CONCRETE_CUBES, REGISTER_CYLINDERS):
                entry.concrete_class = sample_set.get('concrete_class')
            elif register_type == REGISTER_PAVERS:
                entry.paver_type = sample_set.get('paver_type')
                entry.paver_thickness = sample_set.get('paver_thickness')
                entry.pavers_per_square_metre = sample_set.get('pavers_per_square_metre')
            elif register_type == REGISTER_BRICKS_BLOCKS:
                entry.sample_type = sample_set.get('sample_type')
                entry.block_type = sample_set.get('block_type')
            elif register_type == REGISTER_WATER_ABSORPTION:
                entry.sample_type = sample_set.get('sample_type') or test.material_category
            db.session.add(entry)
            entries.append(entry)

        snapshot.append(test_snapshot)

    receipt.tests = snapshot

    _create_project(receipt, selections, snapshot)
    invoice = _create_draft_invoice(receipt, snapshot)

    db.session.flush()
    AuditLog.record(
        user, 'CREATE', 'receipts', record_id=receipt.id,
        new_values={
            'receipt_number': receipt_number,
            'client': receipt.client_name,
            'register_entries': [e.certificate_number for e in entries],
            'invoice': invoice.invoice_number,
        },
        ip_address=ip_address,
    )
    db.session.commit()

    logger.info('Receipt %s created with %d register entries', receipt_number, len(entries))
    return receipt


def _create_project(receipt, selections, snapshot):
    """Project with one task per test that is not tracked in a register."""
    category_totals = {}
    for item in snapshot:
        key = (item['category'] or '').lower()
        category_totals[key] = category_totals.get(key, 0) + item['quantity']

    project = Project(
        receipt_id=receipt.id,
        client=receipt.client_name,
        title=receipt.project_title or receipt.client_name,
        date=receipt.date_received,
    )
    db.session.add(project)
    db.session.flush()

    for selection, item in zip(selections, snapshot):
        category = (item['category'] or '').lower()
        if category in REGISTER_CATEGORIES or 'water absorption' in item['test_name'].lower():
            continue
        db.session.add(ProjectTask(
            project_id=project.id,
            test_id=selection['test'].id,
            material_category=item['category'],
            category_quantity=category_totals.get(category, item['quantity']),
            material_test=item['test_name'],
            quantity=item['quantity'],
        ))
    return project


def _create_draft_invoice(receipt, snapshot):
    """Draft invoice with VAT, due after the configured number of days."""
    vat_rate = current_app.config.get('VAT_RATE', 0.18)
    due_days = current_app.config.get('INVOICE_DUE_DAYS', 30)

    items, subtotal, tax, total = price_items(
        [{'description': item['test_name'], 'quantity': item['quantity'],
          'unit_price': item['unit_price']} for item in snapshot],
        vat_rate)

    invoice = Invoice(
        invoice_number=f'INV-{receipt.receipt_number:06d}',
        receipt_id=receipt.id,
        client_name=receipt.client_name,
        project_title=receipt.project_title,
        items=items,
        subtotal=subtotal,
        vat_rate=vat_rate,
        tax=tax,
        total=total,
        amount_paid=0.0,
        status=INVOICE_DRAFT,
        issue_date=receipt.date_received,
        due_date=receipt.date_received + timedelta(days=due_days),
    )
    db.session.add(invoice)
    return invoice
