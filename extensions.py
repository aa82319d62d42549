import os
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

db = SQLAlchemy()
migrate = Migrate()


def _truthy(val: str | None) -> bool:
    if not val:
        return False
    return val.strip().lower() in {"1", "true", "yes", "on", "y"}


# In-memory rate limiter (sufficient for single-instance deployments).
limiter = Limiter(
    get_remote_address,
    storage_uri="memory://",
    enabled=not _truthy(os.environ.get("DISABLE_RATE_LIMITING")),
)
