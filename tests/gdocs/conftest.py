"""
Pytest configuration and fixtures for the Google Docs resolution tests.

No test talks to the real service: the Docs API service is a MagicMock whose
documents().get().execute and documents().batchUpdate().execute return canned
API JSON.
"""
import pytest

from doc_builders import make_mock_service, scenario_document


@pytest.fixture
def mock_service_factory():
    """Factory fixture building mock services around a document."""
    return make_mock_service


@pytest.fixture
def scenario_service():
    """Mock service serving the one-paragraph 'Test test test.' document."""
    return make_mock_service(scenario_document())
