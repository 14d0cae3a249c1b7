import logging
import os

import google.auth
from google.auth.exceptions import GoogleAuthError
from google.api_core.exceptions import GoogleAPIError
from google.cloud import secretmanager

logger = logging.getLogger(__name__)


def get_secret(name: str, use_secret_manager: bool = False) -> str | None:
    """
    Read a secret from the environment, then from Google Secret Manager
    when enabled. Returns None when neither has it.
    """
    env_val = os.environ.get(name)
    if env_val:
        return env_val

    if not use_secret_manager:
        return None

    try:
        creds, project_id = google.auth.default()
        if not project_id:
            project_id = os.environ.get("GOOGLE_CLOUD_PROJECT")

        if not project_id:
            return None

        client = secretmanager.SecretManagerServiceClient(credentials=creds)
        secret_path = f"projects/{project_id}/secrets/{name}/versions/latest"
        resp = client.access_secret_version(request={"name": secret_path})
        return resp.payload.data.decode("utf-8").strip()

    except (GoogleAuthError, GoogleAPIError) as e:
        logger.warning("Secret Manager read failed for %s: %s", name, e)
        return None
