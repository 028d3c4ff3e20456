"""Test registers blueprint."""
from flask import Blueprint

registers_bp = Blueprint('registers', __name__)

from . import routes  # noqa: E402, F401
