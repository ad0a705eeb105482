# Models package: import all models here so Alembic can discover them.

from postcards.models.donation import Donation  # noqa: F401
