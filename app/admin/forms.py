"""Admin forms for user and role management."""
from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileAllowed, FileRequired
from wtforms import (
    StringField, PasswordField, SelectField, SelectMultipleField, BooleanField, SubmitField
)
from wtforms.validators import DataRequired, Length, Email, Optional, EqualTo, Regexp, ValidationError
from wtforms.widgets import CheckboxInput, ListWidget

from app.models import User, Role, ROLES, ROLE_LABELS, PERMISSION_GROUPS


def role_choices():
    """Built-in roles followed by custom roles."""
    choices = [(role, ROLE_LABELS[role]) for role in ROLES]
    for role in Role.query.order_by(Role.name).all():
        if role.name not in ROLES:
            choices.append((role.name, role.label or role.name))
    return choices


PERMISSION_CHOICES = [(pid, f'{group}: {label}')
                      for group, items in PERMISSION_GROUPS.items()
                      for pid, label in items]


class MultiCheckboxField(SelectMultipleField):
    """Multiple select rendered as checkboxes."""
    widget = ListWidget(prefix_label=False)
    option_widget = CheckboxInput()


class UserCreateForm(FlaskForm):
    """Form for creating a new user."""
    username = StringField('Username', validators=[
        DataRequired(),
        Length(3, 80, message='Username must be 3-80 characters')
    ])
    full_name = StringField('Full Name', validators=[
        DataRequired(),
        Length(2, 120, message='Full name must be 2-120 characters')
    ])
    email = StringField('Email', validators=[
        Optional(),
        Email(message='Invalid email address')
    ])
    role = SelectField('Role')
    password = PasswordField('Password', validators=[
        DataRequired(),
        Length(6, 128, message='Password must be at least 6 characters')
    ])
    password2 = PasswordField('Confirm Password', validators=[
        DataRequired(),
        EqualTo('password', message='Passwords must match')
    ])
    is_active = BooleanField('Active', default=True)
    submit = SubmitField('Create User')

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.role.choices = role_choices()

    def validate_username(self, field):
        """Check if username already exists."""
        if User.query.filter_by(username=field.data).first():
            raise ValidationError('Username already in use.')


class UserEditForm(FlaskForm):
    """Form for editing an existing user, including permission overrides."""
    username = StringField('Username', validators=[
        DataRequired(),
        Length(3, 80, message='Username must be 3-80 characters')
    ])
    full_name = StringField('Full Name', validators=[
        DataRequired(),
        Length(2, 120, message='Full name must be 2-120 characters')
    ])
    email = StringField('Email', validators=[
        Optional(),
        Email(message='Invalid email address')
    ])
    role = SelectField('Role')
    granted_permissions = MultiCheckboxField('Additional Permissions',
                                             choices=PERMISSION_CHOICES)
    revoked_permissions = MultiCheckboxField('Revoked Permissions',
                                             choices=PERMISSION_CHOICES)
    is_active = BooleanField('Active')
    submit = SubmitField('Save Changes')

    def __init__(self, original_username=None, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.original_username = original_username
        self.role.choices = role_choices()

    def validate_username(self, field):
        """Check if username already exists (excluding current user)."""
        if field.data != self.original_username:
            if User.query.filter_by(username=field.data).first():
                raise ValidationError('Username already in use.')


class PasswordChangeForm(FlaskForm):
    """Form for changing a user's password."""
    password = PasswordField('New Password', validators=[
        DataRequired(),
        Length(6, 128, message='Password must be at least 6 characters')
    ])
    password2 = PasswordField('Confirm Password', validators=[
        DataRequired(),
        EqualTo('password', message='Passwords must match')
    ])
    submit = SubmitField('Change Password')


class SignatureForm(FlaskForm):
    """Signature image upload used on approved certificates."""
    signature = FileField('Signature Image', validators=[
        FileRequired(),
        FileAllowed(['png', 'jpg', 'jpeg', 'gif'], 'Images only')
    ])
    submit = SubmitField('Upload Signature')


class RoleForm(FlaskForm):
    """Form for creating or editing a role."""
    name = StringField('Name', validators=[
        DataRequired(),
        Length(2, 40),
        Regexp(r'^[a-z0-9_-]+$', message='Lowercase letters, digits, - and _ only')
    ])
    label = StringField('Label', validators=[DataRequired(), Length(2, 80)])
    permissions = MultiCheckboxField('Permissions', choices=PERMISSION_CHOICES)
    submit = SubmitField('Save Role')

    def __init__(self, original_name=None, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.original_name = original_name

    def validate_name(self, field):
        """Check if role name already exists."""
        if field.data != self.original_name and Role.query.filter_by(name=field.data).first():
            raise ValidationError('Role name already in use.')
