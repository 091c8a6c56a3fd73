__version__ = "1.0.0"

CLIENT_NAME = "crashlane"
CLIENT_URL = "https://github.com/crashlane/crashlane-python"
