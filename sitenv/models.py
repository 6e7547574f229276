"""
Resolved site configuration record.
Replaces the global constants a CMS bootstrap would otherwise define.
"""

from typing import Optional

from pydantic import BaseModel, Field

from sitenv.resolver import Resolver


class SiteConfig(BaseModel):
    """Everything a consuming CMS needs to boot one site."""
    
    environment: Optional[str] = Field(None, description="Lower-cased APP_ENV")
    home: str = Field(..., description="https:// URL of the current domain")
    site_url: str = Field(..., description="ADMIN variable, or home + /wp")
    domain_current_site: str = Field(..., description="First configured domain")
    disable_cron: bool = Field(False, description='True unless CRON is absent, "" or "0"')
    
    db_name: str
    db_user: Optional[str] = None
    db_password: Optional[str] = None
    db_host: Optional[str] = None
    db_charset: str
    db_collate: str


def build_site_config(resolver: Resolver) -> SiteConfig:
    """
    Resolve the full configuration for the resolver's current app and site.
    
    Credentials embedded in DATABASE_URL take precedence over the
    DATABASE_USER and DATABASE_PASSWORD variables.
    
    Raises:
        UnsafeDefaultSiteRefusal, UnresolvableDatabaseName: see
            Resolver.get_database_name
    """
    domain = resolver.get_domains()[0]
    home = f"https://{domain}"
    url = resolver.get_database_url_parts()
    admin = resolver.get("admin")
    
    return SiteConfig(
        environment=resolver.get_environment_name(),
        home=home,
        site_url=admin if admin is not None else f"{home}/wp",
        domain_current_site=domain,
        disable_cron=resolver.get("cron") not in (None, "", "0"),
        db_name=resolver.get_database_name(),
        db_user=url.user if url.user is not None else resolver.get("database_user"),
        db_password=url.password if url.password is not None else resolver.get("database_password"),
        db_host=url.host,
        db_charset=resolver.get_database_charset(),
        db_collate=resolver.get_database_collation(),
    )
