"""IO adapters: HTTP clients for the CMS block and slot-configuration APIs."""

from slotkit.services.cms_client import CmsClient, cms_client
from slotkit.services.config_client import ConfigClient, config_client

__all__ = ["CmsClient", "cms_client", "ConfigClient", "config_client"]
