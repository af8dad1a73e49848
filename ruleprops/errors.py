"""Exceptions raised inside the property resolution engine."""

from __future__ import annotations


class RulePropsError(Exception):
    """Base class for errors raised by ``ruleprops``."""


class UnsupportedPropertyError(RulePropsError, LookupError):
    """Raised when a property id is not registered for an application."""

    def __init__(self, property_id: int, application_id: int) -> None:
        super().__init__(
            f"Property {property_id} is not supported for application {application_id}"
        )
        self.property_id = property_id
        self.application_id = application_id


class MissingRuleContextError(RulePropsError, ValueError):
    """Raised when a collection property is evaluated without a rule context."""


class ProviderError(RulePropsError):
    """Raised when the metadata provider cannot answer a request."""
