"""Admin authentication.

Learn: The public site is anonymous. Only the admin CRUD routes are
protected, by a shared admin token sent in the X-Admin-Token header.
Identity-provider login is handled outside this service.
"""

from folio.auth.dependencies import require_admin

__all__ = ["require_admin"]
