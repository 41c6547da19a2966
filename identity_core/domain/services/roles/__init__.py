from .role_scope_resolver import RoleScopeResolver

__all__ = ["RoleScopeResolver"]
