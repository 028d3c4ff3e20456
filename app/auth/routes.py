"""Authentication routes."""
from urllib.parse import urlparse

from flask import render_template, redirect, url_for, flash, request, current_app
from flask_login import login_user, logout_user, login_required, current_user

from . import auth_bp
from .forms import LoginForm
from app.extensions import db
from app.models import User, AuditLog


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    """User login page."""
    if current_user.is_authenticated:
        return redirect(url_for('main.dashboard'))

    form = LoginForm()
    if form.validate_on_submit():
        user = User.query.filter_by(username=form.username.data).first()
        if user is None or not user.check_password(form.password.data):
            current_app.logger.warning('Failed login for %s from %s',
                                       form.username.data, request.remote_addr)
            flash('Invalid username or password', 'danger')
            return redirect(url_for('auth.login'))

        if not user.is_active:
            flash('Account is disabled. Contact administrator.', 'warning')
            return redirect(url_for('auth.login'))

        login_user(user, remember=form.remember_me.data)

        # Update last login timestamp
        user.update_last_login()
        AuditLog.record(user, 'LOGIN', 'users', record_id=user.id,
                        ip_address=request.remote_addr)
        db.session.commit()

        flash(f'Welcome, {user.display_name}!', 'success')

        # Redirect to requested page or dashboard (local paths only)
        next_page = request.args.get('next')
        if next_page and not urlparse(next_page).netloc:
            return redirect(next_page)
        return redirect(url_for('main.dashboard'))

    return render_template('auth/login.html', form=form)


@auth_bp.route('/logout')
@login_required
def logout():
    """Log out current user."""
    logout_user()
    flash('You have been logged out.', 'info')
    return redirect(url_for('auth.login'))
