# app/routers/__init__.py
from . import health
from . import shifts
from . import slots
from . import appointments

__all__ = ["health", "shifts", "slots", "appointments"]
