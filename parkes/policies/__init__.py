from parkes.policies.private import is_private, mark_private
from parkes.policies.scope import authorization_scope

__all__ = ["authorization_scope", "is_private", "mark_private"]
