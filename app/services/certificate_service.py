"""Certificate data derivation.

Certificates are not stored. Their content is built on demand from a register
entry, the receipt it arrived on, the machine used and the approving users.
"""

import logging

from flask import current_app

from app.models import (
    Laboratory, Receipt,
    REGISTER_BRICKS_BLOCKS, REGISTER_CONCRETE_CUBES, REGISTER_CYLINDERS,
    REGISTER_PAVERS, REGISTER_WATER_ABSORPTION,
)
from utils.analysis.absorption_calculations import average_absorption
from utils.analysis.age_calculations import format_certificate_date
from utils.analysis.strength_calculations import (
    paver_correction_factor, parse_thickness_mm, sample_count_text,
    average, certificate_average, exceeds_repeatability,
)
from utils.models import (
    AbsorptionSample, BlockSample, BlockType, CubeSample, CylinderSample, PaverSample,
)

logger = logging.getLogger(__name__)

TEMPLATE_CONCRETE = 'concrete'
TEMPLATE_CYLINDER = 'cylinder'
TEMPLATE_PAVER = 'paver'
TEMPLATE_SOLID_BLOCK = 'solid_block'
TEMPLATE_HOLLOW_BLOCK = 'hollow_block'
TEMPLATE_WATER_ABSORPTION = 'water_absorption'

CONCRETE_METHOD = 'BS EN 12390-3: 2019, BS EN 12390-1: 2019 & BS EN 12390-7: 2019'
PAVER_METHOD = 'BS 6717: Part 1: 1993'
BLOCK_METHOD = 'BS EN 772-1: 2011'
ABSORPTION_METHOD = 'IS 2185 (Part 1): 2005'

_COMMON_REMARKS = [
    'This report relates only to the samples tested.',
    'All information about the specimen furnished by the client/client representative.',
]
_DISCARD_REMARK = 'All tested samples will be discarded immediately after the test.'

_METHOD_REMARKS = {
    TEMPLATE_CONCRETE: 'The test was carried out according to BS EN 12390:2019, Testing of '
                       'hardened concrete - Part 3: Compressive strength of test specimens',
    TEMPLATE_CYLINDER: 'The test was carried out according to BS EN 12390:2019, Testing of '
                       'hardened concrete - Part 3: Compressive strength of test specimens',
    TEMPLATE_PAVER: 'The test was carried out according to BS 6717: 1993, Precast concrete '
                    'paving blocks - Part 1. Specification for paving blocks',
    TEMPLATE_SOLID_BLOCK: 'The test was carried out according to BS EN 772-1, Methods of test '
                          'for masonry units - Part 1: Determination of compressive strength',
    TEMPLATE_HOLLOW_BLOCK: 'The test was carried out according to BS EN 772-1, Methods of test '
                           'for masonry units - Part 1: Determination of compressive strength',
    TEMPLATE_WATER_ABSORPTION: 'The test was carried out according to IS 2185 (Part 1): 2005 '
                               'Concrete Masonry Units - Method for the determination of '
                               'water absorption.',
}

_TITLES = {
    TEMPLATE_CONCRETE: 'Test Certificate for Compressive Strength of Concrete Cubes',
    TEMPLATE_CYLINDER: 'Test Certificate for Compressive Strength of Concrete Cylinders',
    TEMPLATE_PAVER: 'Test Certificate for Compressive Strength of Concrete Paving Blocks',
    TEMPLATE_SOLID_BLOCK: 'Test Certificate for Compressive Strength of Solid Blocks/Bricks',
    TEMPLATE_HOLLOW_BLOCK: 'Test Certificate for Compressive Strength of Hollow Blocks',
    TEMPLATE_WATER_ABSORPTION: 'Test Certificate for Water Absorption',
}

_DESCRIPTIONS = {
    TEMPLATE_CONCRETE: 'concrete cubes',
    TEMPLATE_CYLINDER: 'concrete cylinders',
    TEMPLATE_PAVER: 'paving blocks',
    TEMPLATE_SOLID_BLOCK: 'solid blocks/bricks',
    TEMPLATE_HOLLOW_BLOCK: 'hollow blocks',
    TEMPLATE_WATER_ABSORPTION: 'samples',
}

REPEATABILITY_REMARK = ('The average compressive strength value is not provided on this '
                        'certificate because of the variability in the results which exceeds '
                        'the repeatability condition (r = {threshold:g}%)')


def template_for(entry) -> str:
    """Certificate layout used for a register entry."""
    if entry.register_type == REGISTER_BRICKS_BLOCKS:
        return TEMPLATE_HOLLOW_BLOCK if entry.is_hollow else TEMPLATE_SOLID_BLOCK
    return {
        REGISTER_CONCRETE_CUBES: TEMPLATE_CONCRETE,
        REGISTER_CYLINDERS: TEMPLATE_CYLINDER,
        REGISTER_PAVERS: TEMPLATE_PAVER,
        REGISTER_WATER_ABSORPTION: TEMPLATE_WATER_ABSORPTION,
    }.get(entry.register_type, TEMPLATE_CONCRETE)


def format_value(value, digits=2) -> str:
    """Number for display with a fixed number of decimals, '-' when undefined."""
    if value is None:
        return '-'
    try:
        return f'{float(value):.{digits}f}'
    except (TypeError, ValueError):
        return '-'


def _signatory(user, fallback='N/A'):
    if user is None:
        return {'name': fallback, 'signature': None}
    return {'name': user.display_name, 'signature': user.signature_filename}


def _find_receipt(entry):
    if entry.receipt is not None:
        return entry.receipt
    if entry.receipt_number is None:
        return None
    return Receipt.query.filter_by(receipt_number=entry.receipt_number).first()


def _header(entry, template, receipt, lab):
    temperature = entry.temperature
    if temperature is None:
        temperature = current_app.config.get('DEFAULT_FACILITY_TEMPERATURE', 24)
    results = entry.results or []
    first_mode = results[0].get('mode_of_failure') if results else None
    machine = entry.machine

    checked_by = entry.approved_by_engineer
    data = {
        'template': template,
        'title': _TITLES[template],
        'certificate_number': entry.certificate_number or 'N/A',
        'date_of_issue': format_certificate_date(entry.date_of_issue),
        'version': '01',
        'status': entry.status,
        'client_name': entry.client or 'N/A',
        'client_address': receipt.client_address if receipt else 'N/A',
        'client_contact': receipt.client_contact if receipt else 'N/A',
        'project_title': entry.project or 'N/A',
        'sample_description': (
            f'{sample_count_text(entry.sample_count)} {_DESCRIPTIONS[template]} '
            'were delivered to the laboratory for testing'),
        'sample_ids': list(entry.sample_ids or []),
        'condition_at_receipt': 'Satisfactory',
        'date_of_receipt': format_certificate_date(entry.date_received),
        'tested_by': entry.technician or 'N/A',
        'test_location': (lab.address if lab and lab.address else 'N/A'),
        'laboratory_name': lab.name if lab else '',
        'curing_condition': 'Tested as Received',
        'testing_age': f'{entry.age or ">28"} Days',
        'facility_temperature': f'{temperature:g} Degrees Celsius'
        if isinstance(temperature, (int, float)) else f'{temperature} Degrees Celsius',
        'type_of_failure': first_mode or 'Satisfactory',
        'area_of_use': entry.area_of_use or 'N/A',
        'machine': (machine.name if machine else 'N/A'),
        'date_of_casting': format_certificate_date(entry.casting_date),
        'date_of_testing': format_certificate_date(entry.testing_date),
        'checked_by': _signatory(checked_by, fallback=entry.technician or 'N/A'),
        'approved_by': _signatory(entry.approved_by_manager),
        'remarks': list(_COMMON_REMARKS) + [_METHOD_REMARKS[template], _DISCARD_REMARK],
    }
    return data


def _add_strength_summary(data, samples, digits=2):
    threshold = current_app.config.get('REPEATABILITY_THRESHOLD', 9)
    strengths = [s.strength for s in samples]
    if digits is not None:
        strengths = [round(v, digits) if v is not None else None for v in strengths]
    data['average_strength'] = certificate_average(strengths, threshold)
    data['mean_strength'] = average(strengths)
    data['exceeds_repeatability'] = exceeds_repeatability(strengths, threshold)
    if data['exceeds_repeatability']:
        data['remarks'].append(REPEATABILITY_REMARK.format(threshold=threshold))
    return data


def _concrete(entry, data):
    samples = [CubeSample.from_dict(r) for r in entry.results or []]
    data.update({
        'test_method': CONCRETE_METHOD,
        'class_of_concrete': entry.concrete_class or 'N/A',
        'sample_type_size': 'Nominal size 150 x 150 x 150 mm',
        'results': [{
            'sample_id': s.sample_id,
            'length': s.length,
            'width': s.width,
            'height': s.height,
            'weight': s.weight,
            'failure_load': s.load,
            'corrected_failure_load': s.corrected_failure_load,
            'area': s.area,
            'density': s.density,
            'compressive_strength': s.strength,
        } for s in samples],
    })
    return _add_strength_summary(data, samples, digits=None)


def _cylinder(entry, data):
    samples = [CylinderSample.from_dict(r) for r in entry.results or []]
    data.update({
        'test_method': CONCRETE_METHOD,
        'class_of_concrete': entry.concrete_class or 'N/A',
        'sample_type_size': 'Nominal size 150 mm diameter x 300 mm',
        'results': [{
            'sample_id': s.sample_id,
            'diameter': s.diameter,
            'height': s.height,
            'weight': s.weight,
            'failure_load': s.load,
            'corrected_failure_load': s.corrected_failure_load,
            'area': s.area,
            'density': s.density,
            'compressive_strength': s.strength,
        } for s in samples],
    })
    return _add_strength_summary(data, samples, digits=None)


def _paver(entry, data):
    thickness_mm = parse_thickness_mm(entry.paver_thickness)
    samples = [PaverSample.from_dict(r, entry.pavers_per_square_metre, thickness_mm)
               for r in entry.results or []]
    data.update({
        'test_method': PAVER_METHOD,
        'paver_type': entry.paver_type or 'N/A',
        'paver_thickness': entry.paver_thickness or 'N/A',
        'pavers_per_square_metre': entry.pavers_per_square_metre,
        'correction_factor': paver_correction_factor(entry.paver_thickness),
        'results': [{
            'sample_id': s.sample_id,
            'plan_area': s.area,
            'thickness': s.thickness_mm,
            'weight': s.weight,
            'failure_load': s.load,
            'corrected_failure_load': s.corrected_failure_load,
            'density': s.density,
            'compressive_strength': round(s.strength, 1) if s.strength is not None else None,
        } for s in samples],
    })
    return _add_strength_summary(data, samples, digits=1)


def _block(entry, data, block_type):
    samples = [BlockSample.from_dict(r, block_type) for r in entry.results or []]
    data.update({
        'test_method': BLOCK_METHOD,
        'sample_type': entry.sample_type or 'N/A',
        'mode_of_compaction': entry.mode_of_compaction or 'Not Specified',
        'results': [{
            'sample_id': s.sample_id,
            'length': s.length,
            'width': s.width,
            'height': s.height,
            'weight': s.weight,
            'failure_load': s.load,
            'corrected_failure_load': s.effective_load,
            'gross_area': s.gross_area,
            'area': s.area,
            'density': s.density,
            'compressive_strength': s.strength,
        } for s in samples],
    })
    if block_type == BlockType.HOLLOW:
        first = samples[0] if samples else None
        data['computation_holes'] = {
            'hole_a': first.hole_a.to_dict() if first else None,
            'hole_b': first.hole_b.to_dict() if first else None,
            'notch': first.notch.to_dict() if first else None,
        }
    return _add_strength_summary(data, samples, digits=None)


def _water_absorption(entry, data):
    samples = [AbsorptionSample.from_dict(r) for r in entry.results or []]
    rows = []
    for s in samples:
        difference, absorption = s.absorption
        rows.append({
            'sample_id': s.sample_id,
            'length': s.length,
            'width': s.width,
            'height': s.height,
            'dry_weight': s.dry_weight,
            'soaked_weight': s.soaked_weight,
            'mass_difference': difference,
            'water_absorption': absorption,
        })
    data.update({
        'test_method': ABSORPTION_METHOD,
        'sample_type': entry.sample_type or 'N/A',
        'results': rows,
        'average_absorption': average_absorption(r['water_absorption'] for r in rows),
    })
    return data


def build_certificate(entry) -> dict:
    """Certificate view model for a register entry.

    Parameters
    ----------
    entry : RegisterEntry
        Tested register entry

    Returns
    -------
    dict
        Header fields, per-sample rows, averages and remarks. Undefined values
        are None and render as '-'.
    """
    template = template_for(entry)
    receipt = _find_receipt(entry)
    lab = Laboratory.query.order_by(Laboratory.id).first()
    data = _header(entry, template, receipt, lab)

    if template == TEMPLATE_CONCRETE:
        return _concrete(entry, data)
    if template == TEMPLATE_CYLINDER:
        return _cylinder(entry, data)
    if template == TEMPLATE_PAVER:
        return _paver(entry, data)
    if template == TEMPLATE_SOLID_BLOCK:
        return _block(entry, data, BlockType.SOLID)
    if template == TEMPLATE_HOLLOW_BLOCK:
        return _block(entry, data, BlockType.HOLLOW)
    return _water_absorption(entry, data)
