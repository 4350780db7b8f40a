"""
Run configuration for a link audit.

Everything a run needs about its surroundings (which site and page it
audits, how hard it may hit the site, whether the user confirmed) is passed
in explicitly through AuditConfig.
"""

import os
from dataclasses import dataclass, replace
from typing import Optional
from urllib.parse import urlparse


@dataclass(frozen=True)
class AuditConfig:
    """Configuration for one audit run."""
    origin: str = ""              # e.g. "https://www.example-travel.com"
    page_path: str = "/"          # path of the audited page (cruise ships check <page_path>/tours)
    max_concurrent: int = 3
    max_retries: int = 3
    retry_delay: float = 10.0     # seconds between attempts
    settle_delay: float = 2.0     # wait after load for client-rendered content
    second_look_delay: float = 3.0  # extra wait when the body is still nearly empty
    tour_timeout: float = 15.0
    cruise_ship_timeout: float = 15.0
    activity_timeout: float = 10.0
    cruise_timeout: float = 30.0
    cruise_initial_wait: float = 1.0
    cruise_poll_interval: float = 0.5
    headless: bool = True
    confirmed: bool = False       # explicit go/no-go from the user

    @property
    def current_host(self) -> str:
        return (urlparse(self.origin).hostname or "").lower()

    def absolute_url(self, href: str) -> str:
        """Resolve an href against the configured origin."""
        if href.startswith('http'):
            return href
        separator = '' if href.startswith('/') else '/'
        return f"{self.origin.rstrip('/')}{separator}{href}"

    @property
    def tours_url(self) -> str:
        """Tours listing of the audited page, used for cruise ship checks."""
        base_path = self.page_path.rstrip('/')
        return f"{self.origin.rstrip('/')}{base_path}/tours"

    def with_confirmation(self, confirmed: bool = True) -> "AuditConfig":
        return replace(self, confirmed=confirmed)

    @classmethod
    def for_page(cls, page_url: str, **overrides) -> "AuditConfig":
        """Build a config from the URL of the page being audited."""
        parsed = urlparse(page_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"Not an absolute URL: {page_url!r}")
        return cls(
            origin=f"{parsed.scheme}://{parsed.netloc}",
            page_path=parsed.path or "/",
            **overrides,
        )

    @classmethod
    def from_env(cls, page_url: Optional[str] = None) -> "AuditConfig":
        """Defaults overridden by LINK_AUDIT_* environment variables."""
        overrides = {}
        int_vars = {
            'LINK_AUDIT_MAX_CONCURRENT': 'max_concurrent',
            'LINK_AUDIT_MAX_RETRIES': 'max_retries',
        }
        float_vars = {
            'LINK_AUDIT_RETRY_DELAY': 'retry_delay',
            'LINK_AUDIT_SETTLE_DELAY': 'settle_delay',
            'LINK_AUDIT_CRUISE_TIMEOUT': 'cruise_timeout',
        }
        for var, name in int_vars.items():
            if os.environ.get(var):
                overrides[name] = int(os.environ[var])
        for var, name in float_vars.items():
            if os.environ.get(var):
                overrides[name] = float(os.environ[var])
        if os.environ.get('LINK_AUDIT_HEADLESS'):
            overrides['headless'] = os.environ['LINK_AUDIT_HEADLESS'].lower() not in ('0', 'false', 'no')

        page_url = page_url or os.environ.get('LINK_AUDIT_PAGE_URL')
        if page_url:
            return cls.for_page(page_url, **overrides)
        return cls(**overrides)
