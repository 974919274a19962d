"""pushrelay - registry push notifications to container redeploys."""

__version__ = "0.1.0"
