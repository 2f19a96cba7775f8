"""Client library for a {json:api} localization service, with a concurrent task pool."""

__version__ = "0.1.0"