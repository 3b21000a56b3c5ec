"""
Google Gen AI Client Factory
============================

Builds the single `google.genai.Client` used by the application.

Two credential modes:
- API key: GOOGLE_API_KEY (or API_KEY) for the Gemini Developer API
- Vertex AI: GCP_ENABLED=true with GCP_PROJECT_ID, authenticated with the
  service account in GCP_SERVICE_ACCOUNT_JSON (production) or Application
  Default Credentials (local: `gcloud auth application-default login`)

The client is created once at startup and passed explicitly to the
components that need it.
"""

import json

from google import genai
from google.oauth2 import service_account

from config.settings import Settings
from src.core.exceptions import ConfigurationError
from src.utils.logger import setup_logger

logger = setup_logger(__name__)

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
REQUIRED_SERVICE_ACCOUNT_FIELDS = ('type', 'project_id', 'private_key', 'client_email')


def _service_account_credentials(gcp_json_str: str):
    try:
        credentials_info = json.loads(gcp_json_str)
    except json.JSONDecodeError as e:
        logger.error(f"FATAL: GCP_SERVICE_ACCOUNT_JSON is not valid JSON: {e}")
        raise ConfigurationError(
            "Invalid GCP_SERVICE_ACCOUNT_JSON format. "
            "Ensure you've pasted the complete service account JSON content."
        ) from e

    missing_fields = [f for f in REQUIRED_SERVICE_ACCOUNT_FIELDS if f not in credentials_info]
    if missing_fields:
        raise ConfigurationError(f"Service account JSON missing required fields: {missing_fields}")

    logger.info(f"Using service account: {credentials_info.get('client_email')}")
    return service_account.Credentials.from_service_account_info(
        credentials_info,
        scopes=[CLOUD_PLATFORM_SCOPE]
    )


def create_genai_client(settings: Settings) -> genai.Client:
    """
    Create the Gen AI client from settings.

    Raises:
        ConfigurationError: If no usable credential is configured
    """
    settings.validate_settings()

    if not settings.uses_vertex:
        logger.info("Initializing Gemini client with API key")
        return genai.Client(api_key=settings.GOOGLE_API_KEY)

    credentials = None
    if settings.GCP_SERVICE_ACCOUNT_JSON:
        logger.info("Initializing Vertex AI client with service account (Production mode)")
        credentials = _service_account_credentials(settings.GCP_SERVICE_ACCOUNT_JSON)
    else:
        logger.info("Initializing Vertex AI client with ADC (Local development mode)")
        logger.info("  Expecting credentials from: gcloud auth application-default login")

    logger.info(f"  Project: {settings.GCP_PROJECT_ID}, Location: {settings.GCP_LOCATION}")
    return genai.Client(
        vertexai=True,
        project=settings.GCP_PROJECT_ID,
        location=settings.GCP_LOCATION,
        credentials=credentials
    )
