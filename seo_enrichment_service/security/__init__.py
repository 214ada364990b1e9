"""Security utilities for the SEO enrichment service."""

from .api_keys import Role, get_current_role, require_roles

__all__ = ["Role", "get_current_role", "require_roles"]
