"""
Controller Package.

Toolkit-free page controllers: each holds its page's state and delegates
every operation to the service layer.
"""

from qcheck.controllers.base_controller import BaseController
from qcheck.controllers.dashboard_controller import DashboardController
from qcheck.controllers.history_controller import HistoryController
from qcheck.controllers.settings_controller import SettingsController

__all__ = [
    "BaseController",
    "DashboardController",
    "HistoryController",
    "SettingsController",
]
