"""Tests for sample intake: receipts, register entries, projects and invoices."""
from datetime import date

import pytest

from app.models import (
    AuditLog, Invoice, Laboratory, Project, Receipt, RegisterEntry,
    DELIVERY_PICKED_BY, INVOICE_DRAFT, REGISTER_CONCRETE_CUBES, REGISTER_PAVERS,
    REGISTER_WATER_ABSORPTION, REGISTER_BRICKS_BLOCKS, STATUS_PENDING_TEST,
)
from app.services import ValidationError, receipt_service


def intake(**overrides):
    data = {
        'client_name': 'Acme Construction',
        'client_address': 'Plot 4, Kampala Road',
        'client_contact': '+256 700 000000',
        'project_title': 'Nile Bridge',
        'date_received': date(2024, 1, 2),
        'delivery_mode': 'deliveredBy',
        'delivery_person': 'John Driver',
        'is_billing_client_same': True,
        'transmittal_modes': {'email': True, 'whatsapp': False, 'hardcopy': False},
        'transmittal_email': 'site@acme.example',
    }
    data.update(overrides)
    return data


def cube_selection(lab_tests, **set_overrides):
    sample_set = {'sample_ids': ['C1', 'C2', 'C3'], 'casting_date': date(2024, 1, 1),
                  'testing_date': None, 'age': 28, 'concrete_class': 'C25/30',
                  'area_of_use': 'Piers'}
    sample_set.update(set_overrides)
    return {'test': lab_tests['cubes'], 'quantity': 3, 'sets': [sample_set]}


class TestValidation:
    def test_client_required(self, db):
        with pytest.raises(ValidationError, match='Client name'):
            receipt_service.validate_receipt_data(intake(client_name='  '))

    def test_deliverer_required(self, db):
        with pytest.raises(ValidationError, match="Deliverer"):
            receipt_service.validate_receipt_data(intake(delivery_person=''))

    def test_picked_up_needs_no_deliverer(self, db):
        receipt_service.validate_receipt_data(
            intake(delivery_mode=DELIVERY_PICKED_BY, delivery_person=None))

    def test_billing_client_required(self, db):
        with pytest.raises(ValidationError, match='Billing client'):
            receipt_service.validate_receipt_data(intake(is_billing_client_same=False))

    def test_transmittal_mode_required(self, db):
        with pytest.raises(ValidationError, match='transmittal'):
            receipt_service.validate_receipt_data(intake(transmittal_modes={}))

    def test_email_required_for_email_mode(self, db):
        with pytest.raises(ValidationError, match='Email'):
            receipt_service.validate_receipt_data(intake(transmittal_email=None))

    def test_whatsapp_number_required(self, db):
        with pytest.raises(ValidationError, match='WhatsApp'):
            receipt_service.validate_receipt_data(
                intake(transmittal_modes={'whatsapp': True}))

    def test_tests_required(self, db, technician_user):
        with pytest.raises(ValidationError, match='at least one test'):
            receipt_service.create_receipt(intake(), [], technician_user)


class TestSetDates:
    def test_age_sets_testing_date(self):
        casting, testing, age = receipt_service.apply_set_dates(date(2024, 1, 1), None, 7)
        assert testing == date(2024, 1, 8)
        assert age == '7'

    def test_testing_before_casting_is_moved(self):
        casting, testing, age = receipt_service.apply_set_dates(
            date(2024, 1, 10), date(2024, 1, 5))
        assert testing == date(2024, 1, 10)
        assert age == '0'

    def test_long_age(self):
        _, _, age = receipt_service.apply_set_dates(date(2024, 1, 1), date(2024, 3, 1))
        assert age == '>28'

    def test_missing_date(self):
        _, testing, age = receipt_service.apply_set_dates(None, date(2024, 3, 1))
        assert testing == date(2024, 3, 1)
        assert age == ''


class TestRegisterRouting:
    @pytest.mark.parametrize('category,name,expected', [
        ('concrete', 'Compressive Strength of Concrete Cubes', REGISTER_CONCRETE_CUBES),
        ('Pavers', 'Compressive Strength of Paving Blocks', REGISTER_PAVERS),
        ('bricks', 'Compressive Strength of Bricks', REGISTER_BRICKS_BLOCKS),
        ('blocks', 'Compressive Strength of Blocks', REGISTER_BRICKS_BLOCKS),
        ('pavers', 'Water Absorption of Paving Blocks', REGISTER_WATER_ABSORPTION),
        ('aggregates', 'Sieve Analysis', None),
    ])
    def test_register_type_for(self, category, name, expected):
        assert receipt_service.register_type_for(category, name) == expected


class TestReceiptNumbers:
    def test_starts_at_sequence_start(self, db):
        lab = Laboratory.get()
        lab.receipt_sequence_start = 100
        db.session.commit()
        assert receipt_service.next_receipt_number() == 100

    def test_increments_after_last(self, db, lab_tests, technician_user):
        receipt_service.create_receipt(intake(), [cube_selection(lab_tests)], technician_user)
        assert receipt_service.next_receipt_number() == 2

    def test_sequence_start_above_last(self, db, lab_tests, technician_user):
        receipt_service.create_receipt(intake(), [cube_selection(lab_tests)], technician_user)
        Laboratory.get().receipt_sequence_start = 500
        assert receipt_service.next_receipt_number() == 500


class TestCreateReceipt:
    def test_creates_register_entry(self, db, lab_tests, technician_user):
        receipt = receipt_service.create_receipt(
            intake(), [cube_selection(lab_tests)], technician_user)

        assert receipt.receipt_number == 1
        assert receipt.client_name == 'Acme Construction'
        assert receipt.client_address == 'Plot 4, Kampala Road'
        entries = RegisterEntry.query.filter_by(receipt_id=receipt.id).all()
        assert len(entries) == 1
        entry = entries[0]
        assert entry.register_type == REGISTER_CONCRETE_CUBES
        assert entry.status == STATUS_PENDING_TEST
        assert entry.certificate_number == 'DL-1-01'
        assert entry.sample_ids == ['C1', 'C2', 'C3']
        assert entry.testing_date == date(2024, 1, 29)
        assert entry.age == '>28'
        assert entry.concrete_class == 'C25/30'

    def test_picked_up_prefix(self, db, lab_tests, technician_user):
        receipt = receipt_service.create_receipt(
            intake(delivery_mode=DELIVERY_PICKED_BY), [cube_selection(lab_tests)],
            technician_user)
        entry = receipt.register_entries.first()
        assert entry.certificate_number == 'PK-1-01'

    def test_set_ids_continue_across_tests(self, db, lab_tests, technician_user):
        pavers = {'test': lab_tests['pavers'], 'quantity': 3, 'sets': [
            {'sample_ids': ['P1', 'P2', 'P3'], 'casting_date': date(2024, 1, 1),
             'testing_date': date(2024, 1, 29), 'paver_type': 'Zigzag',
             'paver_thickness': '80 mm Plain', 'pavers_per_square_metre': 40},
        ]}
        receipt = receipt_service.create_receipt(
            intake(), [cube_selection(lab_tests), pavers], technician_user)
        numbers = [e.certificate_number for e in
                   receipt.register_entries.order_by(RegisterEntry.set_id).all()]
        assert numbers == ['DL-1-01', 'DL-1-02']
        paver = RegisterEntry.query.filter_by(register_type=REGISTER_PAVERS).one()
        assert paver.paver_thickness == '80 mm Plain'
        assert paver.pavers_per_square_metre == 40

    def test_water_absorption_register(self, db, lab_tests, technician_user):
        selection = {'test': lab_tests['absorption'], 'quantity': 2, 'sets': [
            {'sample_ids': ['W1', 'W2']}]}
        receipt_service.create_receipt(intake(), [selection], technician_user)
        entry = RegisterEntry.query.one()
        assert entry.register_type == REGISTER_WATER_ABSORPTION
        assert entry.sample_type == 'pavers'

    def test_engineer_on_duty_recorded(self, db, lab_tests, technician_user, engineer_user):
        Laboratory.get().engineer_on_duty_id = engineer_user.id
        db.session.commit()
        receipt_service.create_receipt(intake(), [cube_selection(lab_tests)], technician_user)
        assert RegisterEntry.query.one().engineer_on_duty_id == engineer_user.id

    def test_snapshot(self, db, lab_tests, technician_user):
        receipt = receipt_service.create_receipt(
            intake(), [cube_selection(lab_tests)], technician_user)
        assert receipt.tests[0]['test_name'] == 'Compressive Strength of Concrete Cubes'
        assert receipt.tests[0]['sets'][0]['testing_date'] == '2024-01-29'
        assert receipt.form_data['transmittal_email'] == 'site@acme.example'

    def test_project_tasks_for_untracked_tests(self, db, lab_tests, technician_user):
        sieve = {'test': lab_tests['sieve'], 'quantity': 2, 'sets': []}
        receipt = receipt_service.create_receipt(
            intake(), [cube_selection(lab_tests), sieve], technician_user)
        project = Project.query.filter_by(receipt_id=receipt.id).one()
        assert project.title == 'Nile Bridge'
        tasks = project.tasks.all()
        assert len(tasks) == 1
        assert tasks[0].material_test == 'Sieve Analysis'
        assert tasks[0].quantity == 2
        assert tasks[0].category_quantity == 2
        assert tasks[0].technician_id is None

    def test_draft_invoice(self, db, lab_tests, technician_user):
        sieve = {'test': lab_tests['sieve'], 'quantity': 2, 'sets': []}
        receipt = receipt_service.create_receipt(
            intake(), [cube_selection(lab_tests), sieve], technician_user)
        invoice = Invoice.query.filter_by(receipt_id=receipt.id).one()
        assert invoice.invoice_number == 'INV-000001'
        assert invoice.status == INVOICE_DRAFT
        assert invoice.subtotal == pytest.approx(3 * 15000 + 2 * 20000)
        assert invoice.tax == pytest.approx(85000 * 0.18)
        assert invoice.total == pytest.approx(85000 * 1.18)
        assert invoice.balance == pytest.approx(invoice.total)
        assert invoice.due_date == date(2024, 2, 1)

    def test_audit_entry(self, db, lab_tests, technician_user):
        receipt = receipt_service.create_receipt(
            intake(), [cube_selection(lab_tests)], technician_user)
        log = AuditLog.query.filter_by(action='CREATE', table_name='receipts').one()
        assert log.record_id == receipt.id
        assert log.user_id == technician_user.id
        assert log.new_values['register_entries'] == ['DL-1-01']

    def test_persisted(self, db, lab_tests, technician_user):
        receipt_service.create_receipt(intake(), [cube_selection(lab_tests)], technician_user)
        assert Receipt.query.count() == 1
