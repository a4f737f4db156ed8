"""
Event handlers for DroneFit.

Each handler processes a specific type of user event.
"""

from handlers.base import BaseHandler, HandlerContext, HandlerResult
from handlers.answer import SelectOptionHandler, AdvanceHandler
from handlers.navigation import GoBackHandler, ResetHandler

__all__ = [
    # Base classes
    'BaseHandler',
    'HandlerContext',
    'HandlerResult',
    # Handlers
    'SelectOptionHandler',
    'AdvanceHandler',
    'GoBackHandler',
    'ResetHandler',
]
