"""Slotkit exceptions. The kernel never raises these out of a render pass."""

from __future__ import annotations


class SlotkitError(Exception):
    """Base for errors raised at slotkit's IO edges."""

    pass


class CmsLookupError(SlotkitError):
    """The CMS block API could not be reached or answered with an error."""

    pass


class ConfigurationError(SlotkitError):
    """The slot-configuration API could not load or store a configuration."""

    pass
