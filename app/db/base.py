# Garante o registro de TODAS as models no mesmo registry
from app.db.base_class import Base  # noqa
from app.models.audit_log import AuditLog  # noqa
from app.models.block_period import BlockPeriod  # noqa
from app.models.exception_date import ExceptionDate  # noqa
from app.models.professional import Professional  # noqa
from app.models.schedule import WeeklyScheduleEntry  # noqa
