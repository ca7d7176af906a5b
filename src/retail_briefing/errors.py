"""Exception hierarchy shared by sections and their collaborators."""
from __future__ import annotations


class BriefingError(Exception):
    """Base class for briefing failures."""


class RegistryUnavailableError(BriefingError):
    """The branch/goal registry could not be read.

    The registry is a required dependency, so this error is never downgraded
    to fallback data; it surfaces to whoever asked for the section.
    """


class QuerySourceError(BriefingError):
    """The transaction store failed to answer an aggregate query."""


class WeatherUnavailableError(BriefingError):
    """The live weather provider could not produce a summary."""
