"""Shared test fixtures for Flask integration tests."""
from datetime import date

import pytest

from app import create_app
from app.extensions import db as _db
from app.models import (
    User, LabTest, Machine, Laboratory, RegisterEntry,
    ROLE_TECHNICIAN, ROLE_ENGINEER, ROLE_MANAGER, ROLE_ADMIN,
    REGISTER_CONCRETE_CUBES, STATUS_PENDING_TEST,
)


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for the test session."""
    app = create_app('testing')
    app.config['UPLOAD_FOLDER'] = tmp_path_factory.mktemp('uploads')
    app.config['REPORTS_FOLDER'] = tmp_path_factory.mktemp('reports')
    yield app


@pytest.fixture()
def db(app):
    """Per-test database: create tables, yield, then clean up."""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture()
def client(app, db):
    """Flask test client (anonymous)."""
    return app.test_client()


def _user(db, username, role, password, full_name, signature=None):
    user = User(username=username, role=role, full_name=full_name,
                user_id=User.generate_user_id(role), signature_filename=signature)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture()
def technician_user(db):
    """User with technician role."""
    return _user(db, 'tech1', ROLE_TECHNICIAN, 'techpass1', 'Tina Technician')


@pytest.fixture()
def engineer_user(db):
    """User with engineer role and an uploaded signature."""
    return _user(db, 'engineer1', ROLE_ENGINEER, 'password123', 'Eric Engineer',
                 signature='signature_eng.png')


@pytest.fixture()
def manager_user(db):
    """Laboratory manager with an uploaded signature."""
    return _user(db, 'manager1', ROLE_MANAGER, 'managerpass', 'Mary Manager',
                 signature='signature_mgr.png')


@pytest.fixture()
def admin_user(db):
    """User with admin role."""
    return _user(db, 'admin1', ROLE_ADMIN, 'adminpass', 'Ada Admin')


def _login(client, username, password):
    client.post('/auth/login', data={'username': username, 'password': password})
    return client


@pytest.fixture()
def logged_in_client(client, engineer_user):
    """Test client logged in as engineer."""
    return _login(client, 'engineer1', 'password123')


@pytest.fixture()
def technician_client(client, technician_user):
    """Test client logged in as technician."""
    return _login(client, 'tech1', 'techpass1')


@pytest.fixture()
def manager_client(client, manager_user):
    """Test client logged in as laboratory manager."""
    return _login(client, 'manager1', 'managerpass')


@pytest.fixture()
def admin_client(client, admin_user):
    """Test client logged in as admin."""
    return _login(client, 'admin1', 'adminpass')


@pytest.fixture()
def laboratory(db):
    lab = Laboratory(name='Central Materials Lab', address='Plot 12, Industrial Area',
                     receipt_sequence_start=1)
    db.session.add(lab)
    db.session.commit()
    return lab


@pytest.fixture()
def machine(db):
    """Compression machine without correction."""
    m = Machine(name='Compression Machine A', tag_id='CM-01', factor_m=1.0, factor_c=0.0)
    db.session.add(m)
    db.session.commit()
    return m


@pytest.fixture()
def corrected_machine(db):
    """Compression machine with a linear correction."""
    m = Machine(name='Compression Machine B', tag_id='CM-02', factor_m=1.02, factor_c=0.5)
    db.session.add(m)
    db.session.commit()
    return m


@pytest.fixture()
def lab_tests(db):
    """A small test catalogue keyed by short name."""
    tests = {
        'cubes': LabTest(name='Compressive Strength of Concrete Cubes',
                         material_category='concrete', unit_price=15000.0),
        'pavers': LabTest(name='Compressive Strength of Paving Blocks',
                          material_category='pavers', unit_price=12000.0),
        'blocks': LabTest(name='Compressive Strength of Blocks',
                          material_category='blocks', unit_price=10000.0),
        'absorption': LabTest(name='Water Absorption of Paving Blocks',
                              material_category='pavers', unit_price=8000.0),
        'sieve': LabTest(name='Sieve Analysis', material_category='aggregates',
                         unit_price=20000.0),
    }
    db.session.add_all(tests.values())
    db.session.commit()
    return tests


@pytest.fixture()
def cube_entry(db):
    """Concrete cube set awaiting testing, scheduled at 28 days."""
    entry = RegisterEntry(
        register_type=REGISTER_CONCRETE_CUBES,
        receipt_number=1,
        set_id=1,
        date_received=date(2024, 1, 2),
        client='Acme Construction',
        project='Nile Bridge',
        sample_ids=['C1', 'C2', 'C3'],
        area_of_use='Pier foundations',
        casting_date=date(2024, 1, 1),
        testing_date=date(2024, 1, 29),
        age='28',
        concrete_class='C25/30',
        certificate_number='DL-1-01',
        status=STATUS_PENDING_TEST,
        results=[],
    )
    db.session.add(entry)
    db.session.commit()
    return entry


CUBE_RESULTS = [
    {'sample_id': 'C1', 'length': 150, 'width': 150, 'height': 150, 'weight': 8.1,
     'load': 675, 'mode_of_failure': 'Satisfactory'},
    {'sample_id': 'C2', 'length': 150, 'width': 150, 'height': 150, 'weight': 8.2,
     'load': 680, 'mode_of_failure': 'Satisfactory'},
    {'sample_id': 'C3', 'length': 150, 'width': 150, 'height': 150, 'weight': 8.15,
     'load': 690, 'mode_of_failure': 'Satisfactory'},
]


@pytest.fixture()
def tested_entry(db, cube_entry, machine, technician_user):
    """Cube set tested on its scheduled date, pending initial approval."""
    from app.services import register_service
    return register_service.submit_results(
        cube_entry, [dict(r) for r in CUBE_RESULTS], technician_user,
        machine=machine, today=date(2024, 1, 29))
