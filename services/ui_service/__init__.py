"""
UI service - handles user interface components and interactions.
"""

from .chat_interface import ChatInterface, get_chat_interface
from .enhancer_interface import EnhancerInterface, get_enhancer_interface

__all__ = [
    'ChatInterface',
    'get_chat_interface',
    'EnhancerInterface',
    'get_enhancer_interface',
]
