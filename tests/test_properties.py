"""Property catalog behaviour tests."""

from __future__ import annotations

import pytest

from ruleprops.errors import UnsupportedPropertyError
from ruleprops.properties import (
    PLEX_PROPERTIES,
    Application,
    PropertyCatalog,
    PropertyDescriptor,
    default_catalog,
)
from ruleprops.services.evaluator import PROPERTY_HANDLERS, PropertyEvaluator


def test_default_catalog_lookup_by_id() -> None:
    catalog = default_catalog()

    assert catalog.lookup(0).name == "addDate"
    assert catalog.lookup(12).name == "sw_allEpisodesSeenBy"
    assert catalog.lookup(27, Application.PLEX).value_type == "bool"


def test_default_catalog_is_built_once() -> None:
    assert default_catalog() is default_catalog()


def test_plex_property_names_are_unique() -> None:
    names = [descriptor.name for descriptor in PLEX_PROPERTIES]

    assert len(names) == len(set(names)) == 28


def test_unknown_property_raises_distinct_error() -> None:
    catalog = default_catalog()

    with pytest.raises(UnsupportedPropertyError) as excinfo:
        catalog.lookup(999)
    assert isinstance(excinfo.value, LookupError)
    assert excinfo.value.property_id == 999

    with pytest.raises(UnsupportedPropertyError):
        catalog.lookup(0, Application.RADARR)


def test_duplicate_ids_are_rejected() -> None:
    descriptors = [
        PropertyDescriptor(1, "first", "First", "number"),
        PropertyDescriptor(1, "second", "Second", "number"),
    ]

    with pytest.raises(ValueError, match="Duplicate property id 1"):
        PropertyCatalog(descriptors)


def test_same_id_allowed_across_applications() -> None:
    catalog = PropertyCatalog(
        [
            PropertyDescriptor(1, "plexThing", "Plex thing", "number"),
            PropertyDescriptor(
                1, "radarrThing", "Radarr thing", "number", application_id=Application.RADARR
            ),
        ]
    )

    assert len(catalog) == 2
    assert catalog.lookup(1, Application.RADARR).name == "radarrThing"
    assert catalog.names(Application.PLEX) == ("plexThing",)


def test_every_plex_property_has_a_handler() -> None:
    missing = [d.name for d in PLEX_PROPERTIES if d.name not in PROPERTY_HANDLERS]

    assert missing == []


def test_supported_properties_follow_catalog_order(provider) -> None:
    evaluator = PropertyEvaluator(provider)

    supported = evaluator.supported_properties()

    assert [d.id for d in supported] == list(range(28))


def test_membership_accepts_ids_and_descriptors() -> None:
    catalog = default_catalog()
    radarr_only = PropertyCatalog(
        [PropertyDescriptor(3, "radarrThing", "Radarr thing", "number", application_id=Application.RADARR)]
    )

    assert 0 in catalog
    assert catalog.lookup(27) in catalog
    assert 999 not in catalog
    assert True not in catalog
    assert "addDate" not in catalog
    assert PropertyDescriptor(0, "other", "Other", "date") not in catalog
    assert radarr_only.lookup(3, Application.RADARR) in radarr_only
    assert 3 not in radarr_only
