from parkes.config.general import general
from parkes.config.adapters import adapters

__all__ = ["general", "adapters"]
