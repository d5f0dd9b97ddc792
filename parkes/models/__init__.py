from parkes.models._base import ParkesModel, ParkesIntIDModel, utcnow

__all__ = ["ParkesModel", "ParkesIntIDModel", "utcnow"]
