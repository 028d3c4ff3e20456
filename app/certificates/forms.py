"""Certificate approval forms."""
from flask_wtf import FlaskForm
from wtforms import TextAreaField, SubmitField
from wtforms.validators import DataRequired, Length


class ApprovalForm(FlaskForm):
    """Empty form carrying the CSRF token for approve buttons."""
    submit = SubmitField('Approve')


class RejectForm(FlaskForm):
    """Rejection with a mandatory reason."""
    reason = TextAreaField('Reason for rejection', validators=[
        DataRequired(message='Please provide a reason for rejection.'),
        Length(max=1000)
    ])
    submit = SubmitField('Reject')
