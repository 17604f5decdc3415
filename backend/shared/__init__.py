"""
Shared module for common utilities used by the REST API.

STRUCTURE:
- shared.security: Authentication and authorization
  - auth.py: JWT verification, current_user_context, require_roles
  - password.py: Bcrypt hashing

- shared.infrastructure: Database and request plumbing
  - db.py: SQLAlchemy sessions, get_db(), transaction()
  - correlation.py: X-Request-ID middleware and logging filter

- shared.config: Configuration
  - settings.py: Environment config (Pydantic)
  - logging.py: Structured logging
  - constants.py: Roles, statuses, payment methods, enums

- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging
  - schemas.py: Shared Pydantic schemas

IMPORT EXAMPLES:
    from shared.security.auth import verify_jwt, current_user_context
    from shared.infrastructure.db import get_db, transaction
    from shared.config.settings import settings
    from shared.config.constants import OrderStatus, TableStatus
    from shared.utils.exceptions import NotFoundError, InvalidStateError
"""
