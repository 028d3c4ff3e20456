"""Tests for certificate view-model derivation."""
import math
from datetime import date

import pytest

from app.models import (
    RegisterEntry, Receipt,
    REGISTER_CONCRETE_CUBES, REGISTER_CYLINDERS, REGISTER_PAVERS,
    REGISTER_BRICKS_BLOCKS, REGISTER_WATER_ABSORPTION,
    STATUS_PENDING_INITIAL, BLOCK_SOLID, BLOCK_HOLLOW,
)
from app.services import approval_service
from app.services.certificate_service import (
    build_certificate, template_for, format_value, REPEATABILITY_REMARK,
    TEMPLATE_CONCRETE, TEMPLATE_CYLINDER, TEMPLATE_PAVER, TEMPLATE_SOLID_BLOCK,
    TEMPLATE_HOLLOW_BLOCK, TEMPLATE_WATER_ABSORPTION,
)


def entry_with(db, register_type, results, **kwargs):
    defaults = dict(register_type=register_type, receipt_number=3, set_id=1,
                    certificate_number='DL-3-01', client='Acme', project='Depot',
                    sample_ids=[r.get('sample_id') for r in results],
                    casting_date=date(2024, 1, 1), testing_date=date(2024, 1, 29),
                    age='28', status=STATUS_PENDING_INITIAL, technician='Tina Technician',
                    results=results)
    defaults.update(kwargs)
    entry = RegisterEntry(**defaults)
    db.session.add(entry)
    db.session.commit()
    return entry


class TestTemplateFor:
    @pytest.mark.parametrize('register_type,block_type,expected', [
        (REGISTER_CONCRETE_CUBES, None, TEMPLATE_CONCRETE),
        (REGISTER_CYLINDERS, None, TEMPLATE_CYLINDER),
        (REGISTER_PAVERS, None, TEMPLATE_PAVER),
        (REGISTER_BRICKS_BLOCKS, BLOCK_SOLID, TEMPLATE_SOLID_BLOCK),
        (REGISTER_BRICKS_BLOCKS, None, TEMPLATE_SOLID_BLOCK),
        (REGISTER_BRICKS_BLOCKS, BLOCK_HOLLOW, TEMPLATE_HOLLOW_BLOCK),
        (REGISTER_WATER_ABSORPTION, None, TEMPLATE_WATER_ABSORPTION),
    ])
    def test_mapping(self, register_type, block_type, expected):
        entry = RegisterEntry(register_type=register_type, block_type=block_type)
        assert template_for(entry) == expected


class TestFormatValue:
    def test_format(self):
        assert format_value(30.2222) == '30.22'
        assert format_value(30.2222, 1) == '30.2'
        assert format_value(None) == '-'
        assert format_value('n/a') == '-'


class TestConcreteCertificate:
    def test_header(self, db, laboratory, tested_entry):
        cert = build_certificate(tested_entry)
        assert cert['template'] == TEMPLATE_CONCRETE
        assert cert['certificate_number'] == 'DL-1-01'
        assert cert['client_name'] == 'Acme Construction'
        assert cert['project_title'] == 'Nile Bridge'
        assert cert['sample_description'].startswith('Three (03) concrete cubes')
        assert cert['testing_age'] == '>28 Days'
        assert cert['facility_temperature'] == '24 Degrees Celsius'
        assert cert['date_of_casting'] == '01/01/2024'
        assert cert['date_of_testing'] == '29/01/2024'
        assert cert['machine'] == 'Compression Machine A'
        assert cert['class_of_concrete'] == 'C25/30'
        assert cert['test_location'] == 'Plot 12, Industrial Area'
        assert cert['laboratory_name'] == 'Central Materials Lab'

    def test_missing_receipt_fields(self, db, tested_entry):
        cert = build_certificate(tested_entry)
        assert cert['client_address'] == 'N/A'
        assert cert['client_contact'] == 'N/A'

    def test_receipt_found_by_number(self, db, tested_entry):
        db.session.add(Receipt(receipt_number=1, client_name='Acme Construction',
                               form_data={'client_address': 'Plot 4',
                                          'client_contact': '0700 000000'}))
        db.session.commit()
        cert = build_certificate(tested_entry)
        assert cert['client_address'] == 'Plot 4'
        assert cert['client_contact'] == '0700 000000'

    def test_results_and_average(self, tested_entry):
        cert = build_certificate(tested_entry)
        strengths = [r['compressive_strength'] for r in cert['results']]
        assert strengths == pytest.approx([30.0, 680 / 22.5, 690 / 22.5])
        assert cert['results'][0]['density'] == pytest.approx(2400.0)
        assert not cert['exceeds_repeatability']
        assert cert['average_strength'] == pytest.approx(sum(strengths) / 3)

    def test_repeatability_exceeded(self, db):
        entry = entry_with(db, REGISTER_CONCRETE_CUBES, [
            {'sample_id': 'C1', 'corrected_failure_load': 450},
            {'sample_id': 'C2', 'corrected_failure_load': 675},
            {'sample_id': 'C3', 'corrected_failure_load': 900},
        ])
        cert = build_certificate(entry)
        assert cert['exceeds_repeatability']
        assert cert['average_strength'] is None
        assert cert['mean_strength'] == pytest.approx(30.0)
        assert REPEATABILITY_REMARK.format(threshold=9.0) in cert['remarks']

    def test_signatories(self, tested_entry, engineer_user, manager_user):
        cert = build_certificate(tested_entry)
        assert cert['checked_by'] == {'name': 'Tina Technician', 'signature': None}
        assert cert['approved_by']['name'] == 'N/A'

        approval_service.approve_initial(tested_entry, engineer_user)
        approval_service.approve_final(tested_entry, manager_user)
        cert = build_certificate(tested_entry)
        assert cert['checked_by'] == {'name': 'Eric Engineer',
                                      'signature': 'signature_eng.png'}
        assert cert['approved_by'] == {'name': 'Mary Manager',
                                       'signature': 'signature_mgr.png'}

    def test_recorded_temperature(self, db):
        entry = entry_with(db, REGISTER_CONCRETE_CUBES,
                           [{'sample_id': 'C1', 'corrected_failure_load': 675}],
                           temperature=21.5)
        assert build_certificate(entry)['facility_temperature'] == '21.5 Degrees Celsius'


class TestCylinderCertificate:
    def test_circular_area(self, db):
        entry = entry_with(db, REGISTER_CYLINDERS, [
            {'sample_id': 'Y1', 'corrected_failure_load': 530},
        ])
        cert = build_certificate(entry)
        area = math.pi * 75 ** 2
        assert cert['results'][0]['area'] == pytest.approx(area)
        assert cert['results'][0]['compressive_strength'] == pytest.approx(530000 / area)
        assert 'Cylinders' in cert['title']


class TestPaverCertificate:
    def test_strength_from_laying_density(self, db):
        entry = entry_with(db, REGISTER_PAVERS, [
            {'sample_id': 'P1', 'load': 500, 'corrected_failure_load': 560},
            {'sample_id': 'P2', 'load': 510, 'corrected_failure_load': 571.2},
        ], paver_type='Zigzag', paver_thickness='80 mm Plain', pavers_per_square_metre=40)
        cert = build_certificate(entry)
        assert cert['correction_factor'] == 1.12
        assert cert['results'][0]['plan_area'] == pytest.approx(25000)
        assert cert['results'][0]['thickness'] == 80.0
        assert cert['results'][0]['compressive_strength'] == 22.4
        assert cert['average_strength'] == pytest.approx((22.4 + 22.8) / 2)

    def test_repeatability_withholds_average(self, db):
        entry = entry_with(db, REGISTER_PAVERS, [
            {'sample_id': 'P1', 'corrected_failure_load': 300},
            {'sample_id': 'P2', 'corrected_failure_load': 600},
        ], paver_thickness='60 mm Plain', pavers_per_square_metre=40)
        cert = build_certificate(entry)
        assert cert['average_strength'] is None
        assert any('repeatability' in r for r in cert['remarks'])


class TestBlockCertificate:
    def test_solid(self, db):
        entry = entry_with(db, REGISTER_BRICKS_BLOCKS, [
            {'sample_id': 'B1', 'length': 390, 'width': 190, 'height': 190,
             'load': 741, 'corrected_failure_load': None},
        ], block_type=BLOCK_SOLID, sample_type='Concrete block')
        cert = build_certificate(entry)
        assert cert['template'] == TEMPLATE_SOLID_BLOCK
        row = cert['results'][0]
        assert row['corrected_failure_load'] == 741
        assert row['compressive_strength'] == pytest.approx(10.0)
        assert cert['mode_of_compaction'] == 'Not Specified'
        assert 'computation_holes' not in cert

    def test_hollow(self, db):
        entry = entry_with(db, REGISTER_BRICKS_BLOCKS, [
            {'sample_id': 'B1', 'length': 390, 'width': 190, 'height': 190,
             'corrected_failure_load': 641,
             'hole_a': {'l': 100, 'w': 50, 'no': 2}},
        ], block_type=BLOCK_HOLLOW)
        cert = build_certificate(entry)
        row = cert['results'][0]
        assert row['gross_area'] == 74100
        assert row['area'] == 64100
        assert row['compressive_strength'] == pytest.approx(10.0)
        assert cert['computation_holes']['hole_a'] == {'l': 100.0, 'w': 50.0, 'no': 2.0}


class TestWaterAbsorptionCertificate:
    def test_average(self, db):
        entry = entry_with(db, REGISTER_WATER_ABSORPTION, [
            {'sample_id': 'W1', 'dry_weight': 2.0, 'soaked_weight': 2.1},
            {'sample_id': 'W2', 'dry_weight': 2.0, 'soaked_weight': 2.12},
        ], sample_type='Paving blocks')
        cert = build_certificate(entry)
        assert [r['water_absorption'] for r in cert['results']] == pytest.approx([5.0, 6.0])
        assert cert['average_absorption'] == pytest.approx(5.5)
        assert cert['sample_type'] == 'Paving blocks'
        assert 'average_strength' not in cert
