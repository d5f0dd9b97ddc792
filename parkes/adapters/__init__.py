from parkes.adapters.database import DatabaseAdapter

__all__ = ["DatabaseAdapter"]
