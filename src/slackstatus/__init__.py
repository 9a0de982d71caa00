"""slack-status: set your Slack status from the command line."""

__version__ = "0.4.0"
