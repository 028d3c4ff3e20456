"""Tests for test result entry, corrected loads and register edits."""
from datetime import date

import pytest

from app.models import (
    AuditLog, Laboratory, RegisterEntry,
    REGISTER_PAVERS, REGISTER_WATER_ABSORPTION, REGISTER_BRICKS_BLOCKS,
    STATUS_PENDING_TEST, STATUS_PENDING_INITIAL, STATUS_REJECTED, BLOCK_HOLLOW,
)
from app.services import WorkflowError, register_service

from conftest import CUBE_RESULTS


def results():
    return [dict(r) for r in CUBE_RESULTS]


def make_entry(db, register_type, **kwargs):
    entry = RegisterEntry(register_type=register_type, receipt_number=7, set_id=1,
                          certificate_number=f'DL-7-{register_type}', client='Acme',
                          status=STATUS_PENDING_TEST, results=[], **kwargs)
    db.session.add(entry)
    db.session.commit()
    return entry


class TestSubmitResults:
    def test_moves_to_initial_approval(self, tested_entry, technician_user, machine):
        assert tested_entry.status == STATUS_PENDING_INITIAL
        assert tested_entry.technician == 'Tina Technician'
        assert tested_entry.technician_id == technician_user.id
        assert tested_entry.machine_id == machine.id
        assert tested_entry.date_of_issue is not None
        assert tested_entry.age == '>28'
        assert tested_entry.testing_date == date(2024, 1, 29)

    def test_corrected_loads(self, db, cube_entry, corrected_machine, technician_user):
        entry = register_service.submit_results(
            cube_entry, results(), technician_user, machine=corrected_machine,
            today=date(2024, 1, 29))
        loads = [r['corrected_failure_load'] for r in entry.results]
        assert loads == pytest.approx([689.0, 694.1, 704.3])

    def test_without_machine_leaves_corrected_load_empty(self, db, cube_entry,
                                                         technician_user):
        entry = register_service.submit_results(
            cube_entry, results(), technician_user, today=date(2024, 1, 29))
        assert all(r['corrected_failure_load'] is None for r in entry.results)
        assert entry.machine_id is None

    def test_numeric_strings_coerced(self, db, cube_entry, machine, technician_user):
        raw = [{'sample_id': 'C1', 'length': '150', 'load': '675'}]
        entry = register_service.submit_results(
            cube_entry, raw, technician_user, machine=machine, today=date(2024, 1, 29))
        assert entry.results[0]['length'] == 150.0
        assert entry.results[0]['corrected_failure_load'] == 675.0

    def test_early_testing_requires_override(self, db, cube_entry, machine, technician_user):
        with pytest.raises(WorkflowError, match='override'):
            register_service.submit_results(cube_entry, results(), technician_user,
                                            machine=machine, today=date(2024, 1, 8))
        assert cube_entry.status == STATUS_PENDING_TEST

    def test_early_testing_with_override(self, db, cube_entry, machine, technician_user):
        entry = register_service.submit_results(
            cube_entry, results(), technician_user, machine=machine, override=True,
            today=date(2024, 1, 8))
        assert entry.testing_date == date(2024, 1, 8)
        assert entry.age == '7'
        log = AuditLog.query.filter_by(action='SUBMIT_RESULTS').one()
        assert log.reason == 'Tested before scheduled date'

    def test_late_testing_updates_age(self, db, cube_entry, machine, technician_user):
        entry = register_service.submit_results(
            cube_entry, results(), technician_user, machine=machine,
            today=date(2024, 2, 10))
        assert entry.testing_date == date(2024, 2, 10)
        assert entry.age == '>28'

    def test_requires_results(self, db, cube_entry, technician_user):
        with pytest.raises(WorkflowError):
            register_service.submit_results(cube_entry, [], technician_user,
                                            today=date(2024, 1, 29))

    def test_not_twice(self, tested_entry, technician_user):
        with pytest.raises(WorkflowError, match='cannot be entered'):
            register_service.submit_results(tested_entry, results(), technician_user,
                                            today=date(2024, 1, 29))

    def test_retest_after_rejection(self, db, tested_entry, engineer_user,
                                    technician_user, machine):
        tested_entry.reject(engineer_user, 'Wrong dimensions')
        db.session.commit()
        assert tested_entry.status == STATUS_REJECTED
        entry = register_service.submit_results(
            tested_entry, results(), technician_user, machine=machine,
            today=date(2024, 1, 29))
        assert entry.status == STATUS_PENDING_INITIAL

    def test_engineer_on_duty_recorded(self, db, cube_entry, machine, technician_user,
                                       engineer_user):
        Laboratory.get().engineer_on_duty_id = engineer_user.id
        entry = register_service.submit_results(
            cube_entry, results(), technician_user, machine=machine,
            today=date(2024, 1, 29))
        assert entry.engineer_on_duty_id == engineer_user.id

    def test_temperature_and_comment(self, db, cube_entry, machine, technician_user):
        entry = register_service.submit_results(
            cube_entry, results(), technician_user, machine=machine, temperature=22.5,
            comment='Cubes received damp', today=date(2024, 1, 29))
        assert entry.temperature == 22.5
        assert entry.comment == 'Cubes received damp'


class TestComputeResults:
    def test_paver_thickness_correction(self, db, technician_user):
        entry = make_entry(db, REGISTER_PAVERS, paver_thickness='80 mm Plain',
                           pavers_per_square_metre=40)
        register_service.submit_results(
            entry, [{'sample_id': 'P1', 'load': 500}], technician_user)
        assert entry.results[0]['corrected_failure_load'] == pytest.approx(560.0)

    def test_paver_thickness_override(self, db, technician_user):
        entry = make_entry(db, REGISTER_PAVERS, paver_thickness='80 mm Plain')
        register_service.submit_results(
            entry, [{'sample_id': 'P1', 'load': 500}], technician_user,
            paver_thickness='100 mm Chamfered')
        assert entry.paver_thickness == '100 mm Chamfered'
        assert entry.results[0]['corrected_failure_load'] == pytest.approx(620.0)

    def test_water_absorption(self, db, technician_user):
        entry = make_entry(db, REGISTER_WATER_ABSORPTION)
        register_service.submit_results(
            entry, [{'sample_id': 'W1', 'dry_weight': 2.0, 'soaked_weight': 2.1}],
            technician_user)
        assert entry.results[0]['mass_difference'] == pytest.approx(0.1)
        assert entry.results[0]['water_absorption'] == pytest.approx(5.0)

    def test_hollow_block_holes_kept(self, db, machine, technician_user):
        entry = make_entry(db, REGISTER_BRICKS_BLOCKS, block_type=BLOCK_HOLLOW)
        register_service.submit_results(
            entry, [{'sample_id': 'B1', 'length': 390, 'width': 190, 'load': 641,
                     'hole_a': {'l': '100', 'w': '50', 'no': '2'}}],
            technician_user, machine=machine)
        result = entry.results[0]
        assert result['hole_a'] == {'l': 100.0, 'w': 50.0, 'no': 2.0}
        assert result['corrected_failure_load'] == 641.0


class TestRecalculate:
    def test_new_machine(self, db, tested_entry, corrected_machine, engineer_user):
        register_service.recalculate_corrected_loads(tested_entry, corrected_machine,
                                                     engineer_user)
        assert tested_entry.machine_id == corrected_machine.id
        assert tested_entry.results[0]['corrected_failure_load'] == pytest.approx(689.0)
        assert AuditLog.query.filter_by(action='RECALCULATE').count() == 1

    def test_not_for_pavers(self, db, machine):
        entry = make_entry(db, REGISTER_PAVERS)
        with pytest.raises(WorkflowError):
            register_service.recalculate_corrected_loads(entry, machine)


class TestUpdateMetadata:
    def test_changes_fields(self, db, cube_entry, engineer_user):
        register_service.update_metadata(cube_entry, {'client': 'Acme Ltd',
                                                      'concrete_class': 'C30/37'},
                                         engineer_user)
        assert cube_entry.client == 'Acme Ltd'
        assert cube_entry.concrete_class == 'C30/37'
        log = AuditLog.query.filter_by(action='UPDATE', table_name='register_entries').one()
        assert log.old_values['client'] == 'Acme Construction'

    def test_date_change_recomputes_age(self, db, cube_entry, engineer_user):
        register_service.update_metadata(cube_entry, {'testing_date': date(2024, 1, 8)},
                                         engineer_user)
        assert cube_entry.testing_date == date(2024, 1, 8)
        assert cube_entry.age == '7'

    def test_thickness_change_rederives_paver_loads(self, db, technician_user, engineer_user):
        from app.services import certificate_service
        entry = make_entry(db, REGISTER_PAVERS, paver_thickness='60 mm Plain',
                           pavers_per_square_metre=40)
        register_service.submit_results(
            entry, [{'sample_id': 'P1', 'load': 500}], technician_user)
        assert entry.results[0]['corrected_failure_load'] == pytest.approx(500.0)

        register_service.update_metadata(entry, {'paver_thickness': '100 mm Chamfered'},
                                         engineer_user)
        assert entry.results[0]['load'] == 500.0
        assert entry.results[0]['corrected_failure_load'] == pytest.approx(620.0)

        cert = certificate_service.build_certificate(entry)
        assert cert['correction_factor'] == pytest.approx(1.24)
        assert cert['results'][0]['corrected_failure_load'] == pytest.approx(620.0)

    def test_no_changes_no_audit(self, db, cube_entry, engineer_user):
        register_service.update_metadata(cube_entry, {'client': 'Acme Construction'},
                                         engineer_user)
        assert AuditLog.query.count() == 0


class TestListAndDelete:
    def test_list_by_status(self, db, cube_entry, tested_entry):
        from app.models import REGISTER_CONCRETE_CUBES
        assert register_service.list_entries(REGISTER_CONCRETE_CUBES) == [tested_entry]
        assert register_service.list_entries(REGISTER_CONCRETE_CUBES,
                                             STATUS_PENDING_TEST) == []

    def test_delete(self, db, cube_entry, manager_user):
        register_service.delete_entry(cube_entry, manager_user)
        assert RegisterEntry.query.count() == 0
        assert AuditLog.query.filter_by(action='DELETE').count() == 1
