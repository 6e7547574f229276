"""
Resolver construction shared by the HTTP and CLI entry points.
"""

from typing import Mapping, Optional

from sitenv.config import settings
from sitenv.resolver import Resolver


def create_resolver(
    environ: Mapping[str, str],
    app_name: Optional[str] = None,
    site_name: Optional[str] = None,
    allow_default_site: Optional[bool] = None,
) -> Resolver:
    """
    Build a Resolver over ``environ`` with identity taken from the arguments,
    falling back to the SITENV_* service settings.
    """
    resolver = Resolver(environ)
    resolver.set_app_name(app_name if app_name is not None else settings.APP_NAME)
    resolver.set_site_name(site_name if site_name is not None else settings.SITE_NAME)
    if allow_default_site is None:
        allow_default_site = settings.MULTISITE_DEFAULT_SITE_ALLOWED
    resolver.set_multi_site_default_site_allowed(allow_default_site)
    return resolver


def site_for_host(resolver: Resolver, host: str) -> str:
    """
    Site name serving ``host`` according to the site matrix.
    Matching ignores case. Unknown hosts map to the configured default site.
    """
    host = host.split(":", 1)[0].lower()
    sites = {key.lower(): site for key, site in resolver.get_sites().items()}
    return sites.get(host, settings.SITE_NAME)
