"""Exceptions raised by grim."""


class GrimError(Exception):
    """Base class for errors that end a grim run early."""


class ConfigurationError(GrimError):
    """
    Raised when the command line cannot produce a runnable configuration.

    The usual cause is a scripted run without any targets.
    """


class SessionSetupError(GrimError):
    """Raised when the terminal cannot be put into interactive mode."""
