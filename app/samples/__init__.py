"""Sample receipt blueprint."""
from flask import Blueprint

samples_bp = Blueprint('samples', __name__)

from . import routes  # noqa: E402, F401
