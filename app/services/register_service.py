"""Register service: test result entry, corrected loads and metadata edits."""

import logging
from datetime import date, datetime

from app.extensions import db
from app.models import (
    AuditLog, Laboratory, RegisterEntry,
    REGISTER_BRICKS_BLOCKS, REGISTER_CONCRETE_CUBES, REGISTER_CYLINDERS,
    REGISTER_PAVERS, REGISTER_WATER_ABSORPTION, STATUS_PENDING_INITIAL,
)
from app.services.errors import WorkflowError
from app.services.receipt_service import apply_set_dates
from utils.analysis.absorption_calculations import water_absorption
from utils.analysis.age_calculations import calculate_age, check_testing_date, to_date
from utils.analysis.strength_calculations import (
    corrected_failure_load, paver_corrected_load, to_number,
)

logger = logging.getLogger(__name__)

MACHINE_CORRECTED_REGISTERS = [REGISTER_CONCRETE_CUBES, REGISTER_CYLINDERS,
                               REGISTER_BRICKS_BLOCKS]

EDITABLE_FIELDS = [
    'client', 'project', 'area_of_use', 'concrete_class', 'paver_type',
    'paver_thickness', 'pavers_per_square_metre', 'sample_type', 'block_type',
    'mode_of_compaction', 'comment', 'temperature',
]

_NUMERIC_RESULT_KEYS = ['length', 'width', 'height', 'diameter', 'weight', 'load',
                        'calculated_area', 'dry_weight', 'soaked_weight']


def list_entries(register_type, status=None):
    """Entries of one register, newest first."""
    query = RegisterEntry.query.filter_by(register_type=register_type)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(RegisterEntry.created_at.desc(), RegisterEntry.id.desc()).all()


def _clean_result(raw):
    """Copy of a submitted sample result with numeric fields coerced."""
    result = dict(raw)
    for key in _NUMERIC_RESULT_KEYS:
        if key in result:
            result[key] = to_number(result[key])
    for key in ('hole_a', 'hole_b', 'notch'):
        if isinstance(result.get(key), dict):
            result[key] = {k: to_number(v) for k, v in result[key].items()}
    return result


def compute_results(entry, results, machine=None, paver_thickness=None):
    """Derive corrected loads or absorption for each sample result.

    Parameters
    ----------
    entry : RegisterEntry
        Entry the results belong to (determines the correction method)
    results : list of dict
        Raw per-sample measurements
    machine : Machine, optional
        Compression machine; without one the corrected load is left empty
    paver_thickness : str, optional
        Thickness class for pavers, defaults to the entry's class

    Returns
    -------
    list of dict
        Results with ``corrected_failure_load`` or absorption fields set
    """
    computed = []
    thickness = paver_thickness or entry.paver_thickness
    for raw in results:
        result = _clean_result(raw)
        if entry.register_type in MACHINE_CORRECTED_REGISTERS:
            if machine is not None:
                result['corrected_failure_load'] = corrected_failure_load(
                    result.get('load'), machine.factor_m, machine.factor_c)
            else:
                result['corrected_failure_load'] = None
        elif entry.register_type == REGISTER_PAVERS:
            result['corrected_failure_load'] = paver_corrected_load(result.get('load'), thickness)
        elif entry.register_type == REGISTER_WATER_ABSORPTION:
            difference, absorption = water_absorption(
                result.get('dry_weight'), result.get('soaked_weight'))
            result['mass_difference'] = difference
            result['water_absorption'] = absorption
        computed.append(result)
    return computed


def submit_results(entry, results, user, machine=None, temperature=None,
                   override=False, today=None, paver_thickness=None,
                   comment=None, ip_address=None):
    """Record test results and send the entry for initial approval.

    Testing before the scheduled date needs ``override``. When the test is
    run on any other day than scheduled, the testing date becomes today and
    the age is recalculated from the casting date.
    """
    if not entry.can_test:
        raise WorkflowError(f'Results cannot be entered while the entry is {entry.status}.')
    if not results:
        raise WorkflowError('Enter at least one sample result.')

    today = today or date.today()
    check = check_testing_date(entry.testing_date, today)
    if check.is_before and not override:
        raise WorkflowError(
            f'Scheduled testing date is {entry.testing_date:%d/%m/%Y}. '
            'Testing early requires an override.')

    old_values = {'status': entry.status, 'testing_date': _iso(entry.testing_date),
                  'age': entry.age}

    if check.is_before or check.is_after:
        entry.testing_date = today
    age = calculate_age(entry.casting_date, entry.testing_date)
    entry.age = str(age) if age != '' else None

    if entry.register_type == REGISTER_PAVERS and paver_thickness:
        entry.paver_thickness = paver_thickness
    entry.results = compute_results(entry, results, machine, paver_thickness)
    entry.machine_id = machine.id if machine is not None else None
    if temperature is not None:
        entry.temperature = temperature
    if comment is not None:
        entry.comment = comment

    entry.technician = user.display_name
    entry.technician_id = user.id
    entry.date_of_issue = datetime.utcnow()
    entry.status = STATUS_PENDING_INITIAL
    lab = Laboratory.get()
    if lab.engineer_on_duty_id:
        entry.engineer_on_duty_id = lab.engineer_on_duty_id

    AuditLog.record(
        user, 'SUBMIT_RESULTS', 'register_entries', record_id=entry.id,
        old_values=old_values,
        new_values={'status': entry.status, 'testing_date': _iso(entry.testing_date),
                    'age': entry.age, 'samples': len(entry.results)},
        reason='Tested before scheduled date' if check.is_before else None,
        ip_address=ip_address,
    )
    db.session.commit()
    logger.info('Results submitted for %s by %s', entry.certificate_number, user.username)
    return entry


def recalculate_corrected_loads(entry, machine, user=None, ip_address=None):
    """Re-derive every sample's corrected load after a machine change."""
    if entry.register_type not in MACHINE_CORRECTED_REGISTERS:
        raise WorkflowError('Machine corrections do not apply to this register.')
    entry.results = compute_results(entry, entry.results or [], machine)
    entry.machine_id = machine.id if machine is not None else None
    if user is not None:
        AuditLog.record(user, 'RECALCULATE', 'register_entries', record_id=entry.id,
                        new_values={'machine_id': entry.machine_id}, ip_address=ip_address)
    db.session.commit()
    return entry


def update_metadata(entry, changes, user, ip_address=None):
    """Edit descriptive fields and the schedule of an entry.

    Changing the casting or testing date recomputes the age. Changing a
    tested paver entry's thickness class re-derives its corrected loads.
    """
    old_values = {}
    new_values = {}
    for field in EDITABLE_FIELDS:
        if field in changes and getattr(entry, field) != changes[field]:
            old_values[field] = getattr(entry, field)
            setattr(entry, field, changes[field])
            new_values[field] = changes[field]

    if ('paver_thickness' in new_values and entry.register_type == REGISTER_PAVERS
            and entry.results):
        entry.results = compute_results(entry, entry.results)
        new_values['corrected_failure_loads'] = [
            r.get('corrected_failure_load') for r in entry.results]

    if 'casting_date' in changes or 'testing_date' in changes:
        casting = changes.get('casting_date', entry.casting_date)
        testing = changes.get('testing_date', entry.testing_date)
        old_values.update({'casting_date': _iso(entry.casting_date),
                           'testing_date': _iso(entry.testing_date), 'age': entry.age})
        casting, testing, age = apply_set_dates(casting, testing, changes.get('age'))
        entry.casting_date = casting
        entry.testing_date = testing
        entry.age = age or None
        new_values.update({'casting_date': _iso(casting), 'testing_date': _iso(testing),
                           'age': entry.age})

    if new_values:
        AuditLog.record(user, 'UPDATE', 'register_entries', record_id=entry.id,
                        old_values=old_values, new_values=new_values, ip_address=ip_address)
        db.session.commit()
    return entry


def delete_entry(entry, user, ip_address=None):
    """Remove a register entry."""
    AuditLog.record(user, 'DELETE', 'register_entries', record_id=entry.id,
                    old_values={'certificate_number': entry.certificate_number,
                                'status': entry.status},
                    ip_address=ip_address)
    db.session.delete(entry)
    db.session.commit()
    logger.info('Register entry %s deleted by %s', entry.certificate_number, user.username)


def _iso(value):
    value = to_date(value)
    return value.isoformat() if value else None
