# app/modules/registry.py
# Import every model module so Base.metadata knows all tables.
from app.modules.staff import models as staff_models  # noqa: F401
from app.modules.shifts import models as shifts_models  # noqa: F401
from app.modules.appointments import models as appointments_models  # noqa: F401
from app.modules.slots import models as slots_models  # noqa: F401
