"""Use cases - application operations over the core domain.

Every public function takes an explicit ``Context`` first and returns an
``Ok``/``Err`` result (see ``okrhub.services.base.use_case``).
"""

from . import auth, okr, teams, users
from .base import use_case

__all__ = ["auth", "okr", "teams", "users", "use_case"]
