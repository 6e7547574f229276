"""
Typed errors raised while resolving site configuration.
Boundary layers (HTTP, CLI) decide how each one is presented.
"""

from typing import Optional


class ResolverError(Exception):
    """Base class for configuration resolution failures."""


class UnresolvableDatabaseName(ResolverError, ValueError):
    """No usable database name could be derived from the environment."""

    def __init__(self, candidate: Optional[str] = None):
        self.candidate = candidate
        super().__init__("Database name could not be computed.")


class UnsafeDefaultSiteRefusal(ResolverError):
    """
    The derived database name would be the shared "default" site in a
    multi-site install without explicit opt-in.
    """

    def __init__(self, app_name: str, site_name: str = "default"):
        self.app_name = app_name
        self.site_name = site_name
        super().__init__(
            'The "default" site in this multi-site install is not allowed. '
            "Please select a site explicitly (e.g. `--site <site>`) instead."
        )
