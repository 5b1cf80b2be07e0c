# ABOUTME: Web middleware package.
# ABOUTME: Exports the admin bearer-token dependency.

from continued_education.web.middleware.admin_auth import verify_admin_token

__all__ = ["verify_admin_token"]
