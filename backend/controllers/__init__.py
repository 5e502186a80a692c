"""
Session-scoped view controllers. Each keeps its own cached list and reloads
it in full after every successful mutation.
"""

from backend.controllers.base import ErrorPanel, View, ViewController
from backend.controllers.memories import MemoriesController
from backend.controllers.phrases import PhrasesController
from backend.controllers.reminders import RemindersController, ReminderRefused
from backend.controllers.shared_link import SharedMemoryController

__all__ = [
    "ErrorPanel",
    "MemoriesController",
    "PhrasesController",
    "ReminderRefused",
    "RemindersController",
    "SharedMemoryController",
    "View",
    "ViewController",
]
