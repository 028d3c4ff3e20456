"""Tests for the equipment asset register."""
from datetime import date, timedelta

import pytest

from app.models import Asset, AuditLog, CalibrationRecord
from app.services import ValidationError, asset_service


@pytest.fixture()
def balance(db, engineer_user):
    return asset_service.create_asset({
        'name': 'Digital Balance', 'tag_id': 'BAL-01', 'category': 'Balance',
        'requires_calibration': True, 'calibration_frequency_days': 365,
        'next_calibration_date': date(2024, 6, 1),
        'maintenance_frequency_days': 90, 'next_maintenance_date': date(2024, 3, 1),
    }, engineer_user)


class TestIsDue:
    def test_within_window(self):
        assert asset_service.is_due(date(2024, 1, 20), today=date(2024, 1, 1))

    def test_overdue(self):
        assert asset_service.is_due(date(2023, 12, 1), today=date(2024, 1, 1))

    def test_outside_window(self):
        assert not asset_service.is_due(date(2024, 3, 1), today=date(2024, 1, 1))

    def test_missing_date(self):
        assert not asset_service.is_due(None)


class TestCreateAsset:
    def test_create(self, balance):
        assert balance.id is not None
        assert balance.status == 'Active'
        assert AuditLog.query.filter_by(action='CREATE', table_name='assets').count() == 1

    def test_name_required(self, db, engineer_user):
        with pytest.raises(ValidationError):
            asset_service.create_asset({'name': ''}, engineer_user)

    def test_duplicate_tag(self, balance, engineer_user):
        with pytest.raises(ValidationError, match='already in use'):
            asset_service.create_asset({'name': 'Other', 'tag_id': 'BAL-01'}, engineer_user)

    def test_unknown_status(self, db, engineer_user):
        with pytest.raises(ValidationError):
            asset_service.create_asset({'name': 'Oven', 'status': 'Borrowed'}, engineer_user)

    def test_blank_tag_stored_as_none(self, db, engineer_user):
        asset = asset_service.create_asset({'name': 'Oven', 'tag_id': '  '}, engineer_user)
        assert asset.tag_id is None


class TestUpdateAndDelete:
    def test_update(self, balance, engineer_user):
        asset_service.update_asset(balance, {'name': 'Digital Balance 2 kg',
                                             'tag_id': 'BAL-01',
                                             'location': 'Store'}, engineer_user)
        assert balance.name == 'Digital Balance 2 kg'
        log = AuditLog.query.filter_by(action='UPDATE', table_name='assets').one()
        assert log.new_values == {'name': 'Digital Balance 2 kg', 'location': 'Store'}

    def test_update_tag_collision(self, db, balance, engineer_user):
        asset_service.create_asset({'name': 'Oven', 'tag_id': 'OV-01'}, engineer_user)
        with pytest.raises(ValidationError):
            asset_service.update_asset(balance, {'name': 'Digital Balance',
                                                 'tag_id': 'OV-01'}, engineer_user)

    def test_delete_cascades_records(self, db, balance, engineer_user):
        asset_service.log_calibration(balance, {'calibration_date': date(2024, 1, 10)},
                                      engineer_user)
        asset_service.delete_asset(balance, engineer_user)
        assert Asset.query.count() == 0
        assert CalibrationRecord.query.count() == 0


class TestCalibration:
    def test_advances_next_date(self, balance, engineer_user):
        record = asset_service.log_calibration(balance, {
            'calibration_date': date(2024, 1, 10), 'performed_by': 'UNBS',
            'certificate_number': 'CAL-778', 'result': 'Passed',
        }, engineer_user)
        assert record.asset_id == balance.id
        assert balance.next_calibration_date == date(2024, 1, 10) + timedelta(days=365)
        assert balance.calibrations.count() == 1

    def test_date_required(self, balance, engineer_user):
        with pytest.raises(ValidationError):
            asset_service.log_calibration(balance, {}, engineer_user)

    def test_unknown_result(self, balance, engineer_user):
        with pytest.raises(ValidationError):
            asset_service.log_calibration(balance, {'calibration_date': date(2024, 1, 10),
                                                    'result': 'Maybe'}, engineer_user)

    def test_calibration_due(self, balance):
        assert asset_service.calibration_due(today=date(2024, 5, 15)) == [balance]
        assert asset_service.calibration_due(today=date(2024, 1, 1)) == []


class TestMaintenance:
    def test_advances_next_date(self, balance, engineer_user):
        asset_service.log_maintenance(balance, {'maintenance_date': date(2024, 2, 20),
                                                'maintenance_type': 'Preventive'},
                                      engineer_user)
        assert balance.next_maintenance_date == date(2024, 5, 20)
        assert balance.maintenance_records.count() == 1

    def test_unknown_type(self, balance, engineer_user):
        with pytest.raises(ValidationError):
            asset_service.log_maintenance(balance, {'maintenance_date': date(2024, 2, 20),
                                                    'maintenance_type': 'Repaint'},
                                          engineer_user)

    def test_maintenance_due(self, balance):
        assert asset_service.maintenance_due(today=date(2024, 2, 15)) == [balance]
        assert asset_service.maintenance_due(today=date(2024, 2, 15), window_days=7) == []
