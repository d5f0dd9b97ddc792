from parkes.controllers.parkes import ParkesController
from parkes.controllers.router import ControllerConfigurator, assemblePolicies, present

__all__ = ["ControllerConfigurator", "ParkesController", "assemblePolicies", "present"]
