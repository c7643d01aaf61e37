# app/models/relations.py

from sqlalchemy.orm import relationship

from .mock_test_attempt import MockTestAttempt


def setup_relationships():
    """
    Configure all SQLAlchemy relationships between models.
    """

    # --- Attempt Store ---

    # Attempt to its test (Many-to-One). Attempts are never deleted by the engine.
    MockTestAttempt.mock_test = relationship("MockTest")
