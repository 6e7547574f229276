"""
Layered environment lookup and multi-site database-name derivation.

A Resolver reads an injected, read-only snapshot of environment variables.
Every lookup first tries the ``APP__SITE__KEY`` namespaced variable and then
the bare ``KEY``, so a single env file can serve several apps and sites.
"""

import os
import re
from typing import Dict, List, Mapping, NamedTuple, Optional
from urllib.parse import urlsplit

from sitenv.errors import UnresolvableDatabaseName, UnsafeDefaultSiteRefusal
from sitenv.logging_utils import get_logger
from sitenv.metrics import database_name_resolutions_total


logger = get_logger("resolver")

DEFAULT_NAME = "default"
DEFAULT_DOMAINS = "default.example"
DEFAULT_CHARSET = "utf8"
DEFAULT_COLLATION = "utf8_general_ci"

_DISALLOWED_DB_CHARS = re.compile(r"[^a-z0-9_]", re.IGNORECASE)


class DatabaseUrlParts(NamedTuple):
    """Connection parts of DATABASE_URL; each is None when missing."""

    user: Optional[str] = None
    password: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None


class Resolver:
    """Resolves configuration for one app/site pair from an environment snapshot."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ: Mapping[str, str] = dict(os.environ) if environ is None else environ
        self._app_name = DEFAULT_NAME
        self._site_name = DEFAULT_NAME
        self._database_name: Optional[str] = None
        self._multi_site_default_site_allowed = False

    # Identity

    def get_app_name(self) -> str:
        return self._app_name

    def set_app_name(self, app_name: str) -> str:
        self._app_name = app_name
        return self._app_name

    def get_site_name(self) -> str:
        return self._site_name

    def set_site_name(self, site_name: str) -> str:
        self._site_name = site_name
        return self._site_name

    def get_environment_name(self) -> Optional[str]:
        """Lower-cased APP_ENV, or None when the loader did not provide one."""
        value = self._environ.get("APP_ENV")
        return value.lower() if value is not None else None

    # Lookup

    def get(self, key: str) -> Optional[str]:
        """
        Get the value of an environment variable for the current app and site.

        ``{APP}__{SITE}__{KEY}`` is returned when defined, otherwise ``{KEY}``.

        Args:
            key: Variable name, case-insensitive

        Returns:
            The value, or None when neither variable is defined
        """
        key = key.upper()
        namespaced = f"{self._app_name}__{self._site_name}".upper() + "__" + key
        if namespaced in self._environ:
            return self._environ[namespaced]
        if key in self._environ:
            return self._environ[key]
        return None

    # Domains and sites

    def get_domains(self) -> List[str]:
        """Domains for this environment; the first one is the current domain."""
        return self._get_or_default("domains", DEFAULT_DOMAINS).split(",")

    def get_sites(self) -> Dict[str, str]:
        """Map of ``{site}.{domain}`` to site name for every site and domain."""
        domains = self.get_domains()
        site_names = self._get_or_default("sites", DEFAULT_NAME).split(",")
        sites: Dict[str, str] = {}
        for site_name in site_names:
            for domain in domains:
                sites[f"{site_name}.{domain}"] = site_name
        return sites

    def is_multi_site(self) -> bool:
        return len(self.get_sites()) > 1

    def is_multi_site_default_site_allowed(self) -> bool:
        return self._multi_site_default_site_allowed

    def set_multi_site_default_site_allowed(self, allowed: bool = True) -> None:
        self._multi_site_default_site_allowed = allowed

    # Database

    def set_database_name(self, database: str) -> None:
        self._database_name = database

    def get_database_name(self) -> str:
        """
        Derive the database name for the current site.

        Order: explicit override, the path of DATABASE_URL, DATABASE_NAME,
        then the site name. A DATABASE_URL without a path marks a multi-site
        install, where the "default" site is refused unless allowed.

        Raises:
            UnsafeDefaultSiteRefusal: the site name "default" would be used
                without opt-in
            UnresolvableDatabaseName: no candidate, or one without any
                character in [a-z0-9_]
        """
        if self._database_name is not None:
            database_name_resolutions_total.labels(source="override", result="ok").inc()
            return self._database_name

        path = self._database_url_path()
        if path is None or path.strip() in ("", "/"):
            source = "database_name"
            result = self.get("database_name")
            if not result:
                source = "site_name"
                result = self.get_site_name()
                if result == DEFAULT_NAME and not self.is_multi_site_default_site_allowed():
                    database_name_resolutions_total.labels(source=source, result="refused").inc()
                    logger.warning(
                        "Refusing default site in multi-site install",
                        extra={"app": self._app_name, "site": self._site_name},
                    )
                    raise UnsafeDefaultSiteRefusal(self._app_name, self._site_name)
        else:
            source = "url"
            result = path[1:]

        if result is None or _DISALLOWED_DB_CHARS.sub("", result) == "":
            database_name_resolutions_total.labels(source=source, result="invalid").inc()
            raise UnresolvableDatabaseName(result)

        database_name_resolutions_total.labels(source=source, result="ok").inc()
        logger.debug(
            "Resolved database name",
            extra={"app": self._app_name, "site": self._site_name, "source": source},
        )
        return result

    def get_database_url_parts(self) -> DatabaseUrlParts:
        """User, password, host and port from DATABASE_URL, if it parses."""
        url = self.get("database_url")
        if url is None:
            return DatabaseUrlParts()
        try:
            parts = urlsplit(url)
            return DatabaseUrlParts(parts.username, parts.password, parts.hostname, parts.port)
        except ValueError:
            return DatabaseUrlParts()

    def get_database_charset(self) -> str:
        return self._get_or_default("database_charset", DEFAULT_CHARSET)

    def get_database_collation(self) -> str:
        return self._get_or_default("database_collation", DEFAULT_COLLATION)

    # Helpers

    def _get_or_default(self, key: str, default: str) -> str:
        value = self.get(key)
        return default if value is None else value

    def _database_url_path(self) -> Optional[str]:
        url = self.get("database_url")
        if url is None:
            return None
        try:
            return urlsplit(url).path
        except ValueError:
            # Unparsable URLs count as "no path"
            return None
