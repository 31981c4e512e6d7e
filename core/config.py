"""
Configuration for the Google Docs resolution engine.

Values are read from the environment, optionally seeded from a .env file
at the project root.
"""
import logging
import os

from dotenv import load_dotenv

dotenv_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), '.env')
load_dotenv(dotenv_path=dotenv_path)

LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

# Google API limits batch size
DOCS_MAX_BATCH_REQUESTS = int(os.getenv("DOCS_MAX_BATCH_REQUESTS", "50"))

DOCS_DOCUMENT_LINK_TEMPLATE = os.getenv(
    "DOCS_DOCUMENT_LINK_TEMPLATE",
    "https://docs.google.com/document/d/{document_id}/edit",
)


def get_document_link(document_id: str) -> str:
    """Return the browser link for a document."""
    return DOCS_DOCUMENT_LINK_TEMPLATE.format(document_id=document_id)


def configure_logging(level: str = None) -> None:
    """
    Configure root logging for scripts and tests that use the engine.

    Args:
        level: Log level name. Defaults to the LOG_LEVEL environment variable.
    """
    # Suppress googleapiclient discovery cache warning
    logging.getLogger('googleapiclient.discovery_cache').setLevel(logging.ERROR)

    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
