# Models package — import all models here so Alembic can discover them.

from royalcrm.models.identity import Identity  # noqa: F401
from royalcrm.models.profile import Profile  # noqa: F401
from royalcrm.models.ticket import Ticket  # noqa: F401
from royalcrm.models.feedback import Feedback  # noqa: F401
