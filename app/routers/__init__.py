from .mock_test import router as mock_test_router

routes = [
    mock_test_router,
]
