"""Errors raised while reading and normalizing requirement sources.

Every error aborts the whole pass. Callers never receive a partially
built specification.
"""


class RequirementsError(Exception):
    """Base class for all reqspec errors"""


class ParseError(RequirementsError):
    """A package literal, requirements file line, or manifest is malformed"""


class InvalidNameError(RequirementsError):
    """A project or extra name is not a valid name token"""


class ConflictError(RequirementsError):
    """Two sources declare different primary index URLs"""

    def __init__(self, existing: str, url: str):
        super().__init__(f"Multiple index URLs specified: `{existing}` vs. `{url}`")
        self.existing = existing
        self.url = url


class RoleViolationError(RequirementsError):
    """An unnamed requirement was used as a constraint or override"""

    def __init__(self, role: str, requirement: object):
        super().__init__(
            f"Unnamed requirements are not allowed as {role} (found: `{requirement}`)"
        )
        self.role = role
        self.requirement = requirement


class NameInferenceError(RequirementsError):
    """No strategy could assign a package name to a URL or path requirement"""


class PreferenceConversionError(RequirementsError):
    """A lockfile entry is not a simple ``name==version`` pin"""


class OfflineError(OSError):
    """A remote location was requested while network access is disabled"""
