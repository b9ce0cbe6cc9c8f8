# Import all models here so Base.metadata.create_all() can discover them
from billing_core.models.base import Base  # noqa: F401
from billing_core.models.ledes import LEDESConfigurationRecord  # noqa: F401
from billing_core.models.trust import TrustAccount  # noqa: F401
from billing_core.models.audit import AuditEvent  # noqa: F401
