"""Exception types raised by crashlane."""


class CrashlaneError(Exception):
    """Base class for all crashlane errors."""


class ConfigurationError(CrashlaneError):
    """A required setting is missing or unusable."""


class MissingCredentialError(ConfigurationError):
    """No API key was configured before creating a client."""

    def __init__(self, message: str = ""):
        super().__init__(
            message
            or "Please specify your API key using crashlane.setup(api_key=...) "
            "or the CRASHLANE_API_KEY environment variable"
        )
