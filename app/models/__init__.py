"""
Models package initialization
Import all models and setup relationships
"""

from .mock_test import MockTest
from .mock_test_attempt import MockTestAttempt

# Import and setup relationships
from .relations import setup_relationships
from .user import User

# Setup all relationships after models are imported
setup_relationships()

# Make models available at package level
__all__ = [
    "MockTest",
    "MockTestAttempt",
    "User",
]
