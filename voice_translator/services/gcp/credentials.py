"""
Google credential resolution shared by the GCP providers.
"""

import os

from voice_translator.config.settings import Settings


def ensure_credentials(settings: Settings):
    """Ensure Google credentials are set in environment."""
    if settings.GOOGLE_APPLICATION_CREDENTIALS and "GOOGLE_APPLICATION_CREDENTIALS" not in os.environ:
        creds_path = settings.GOOGLE_APPLICATION_CREDENTIALS
        if creds_path.startswith("/app/") and not os.path.exists(creds_path):
            # Docker path when running locally
            possible_paths = [
                creds_path.replace("/app/", ""),
                os.path.join("config", os.path.basename(creds_path)),
                os.path.join(os.getcwd(), os.path.basename(creds_path)),
            ]

            for path in possible_paths:
                if os.path.exists(path):
                    creds_path = path
                    break

        os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = creds_path
