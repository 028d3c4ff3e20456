#!/usr/bin/env python3
"""Application entry point."""
import os
from app import create_app, db
from app.models import (
    User, Role, Laboratory, LabTest, Machine, RegisterEntry, Receipt,
    ROLES, ROLE_LABELS, DEFAULT_ROLE_PERMISSIONS
)

# Get config from environment or use development
config_name = os.environ.get('FLASK_CONFIG') or 'development'
app = create_app(config_name)

DEFAULT_TESTS = [
    ('Compressive Strength of Concrete Cubes', 'concrete', 'BS EN 12390-3'),
    ('Compressive Strength of Concrete Cylinders', 'cylinder', 'BS EN 12390-3'),
    ('Compressive Strength of Paving Blocks', 'pavers', 'BS 6717'),
    ('Compressive Strength of Blocks', 'blocks', 'BS EN 772-1'),
    ('Compressive Strength of Bricks', 'bricks', 'BS EN 772-1'),
    ('Water Absorption of Paving Blocks', 'pavers', 'IS 2185'),
    ('Sieve Analysis', 'aggregates', 'BS EN 933-1'),
    ('Tensile Test of Reinforcement Bars', 'steel', 'BS 4449'),
]


@app.shell_context_processor
def make_shell_context():
    """Make database and models available in flask shell."""
    return {'db': db, 'User': User, 'Role': Role, 'Laboratory': Laboratory,
            'LabTest': LabTest, 'Machine': Machine, 'RegisterEntry': RegisterEntry,
            'Receipt': Receipt}


@app.cli.command()
def create_admin():
    """Create an admin user."""
    import getpass

    username = input('Admin username: ')
    full_name = input('Full name: ')
    password = getpass.getpass('Admin password: ')

    if User.query.filter_by(username=username).first():
        print(f'User {username} already exists!')
        return

    user = User(username=username, full_name=full_name or None, role='admin',
                user_id=User.generate_user_id('admin'))
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    print(f'Admin user {username} ({user.user_id}) created successfully!')


@app.cli.command()
def init_db():
    """Initialize the database."""
    db.create_all()
    Laboratory.get()
    db.session.commit()
    print('Database initialized!')


@app.cli.command()
def seed_roles():
    """Store the built-in roles with their default permissions."""
    created = 0
    for name in ROLES:
        if Role.query.filter_by(name=name).first() is None:
            db.session.add(Role(name=name, label=ROLE_LABELS[name],
                                permissions=list(DEFAULT_ROLE_PERMISSIONS[name])))
            created += 1
    db.session.commit()
    print(f'{created} roles created.')


@app.cli.command()
def seed_tests():
    """Add the standard test catalogue."""
    created = 0
    for name, category, method in DEFAULT_TESTS:
        if LabTest.query.filter_by(name=name).first() is None:
            db.session.add(LabTest(name=name, material_category=category, method=method))
            created += 1
    db.session.commit()
    print(f'{created} tests added.')


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=5001, debug=True)
