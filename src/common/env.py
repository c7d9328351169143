"""Environment configuration interface for validate-concepts.

This module provides a clean interface for accessing environment variables,
centralizing all environment variable access in one place.
"""

import os

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()


class Environment:
    """Interface for accessing environment configuration."""

    @staticmethod
    def openai_api_key() -> str:
        """Get the credential for the assessment service.

        Returns:
            API key, defaults to empty string
        """
        return os.getenv("OPENAI_API_KEY", "")

    @staticmethod
    def assessment_model() -> str:
        """Get the model name used for assessments.

        Returns:
            Model name, defaults to 'gpt-4'
        """
        return os.getenv("ASSESSMENT_MODEL", "gpt-4")

    @staticmethod
    def assessment_base_url() -> str:
        """Get the base URL of the chat-completions API.

        Returns:
            Base URL, defaults to the public OpenAI endpoint
        """
        return os.getenv("ASSESSMENT_BASE_URL", "https://api.openai.com/v1")

    @staticmethod
    def assessment_timeout() -> float:
        """Get the assessment request timeout in seconds.

        Returns:
            Timeout, defaults to 60 seconds
        """
        return float(os.getenv("ASSESSMENT_TIMEOUT", "60"))

    @staticmethod
    def log_level() -> str:
        """Get the default log level.

        Returns:
            Log level name, defaults to 'INFO'
        """
        return os.getenv("LOG_LEVEL", "INFO").upper()


# Singleton instance for convenient access
env = Environment()
