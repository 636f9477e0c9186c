"""
Unit tests for span attribute names.
"""

from clustershift import observability
from clustershift.observability import attributes


class TestAttributes:
    """Tests for the ATTR_* constants."""

    def test_all_attributes_are_namespaced(self):
        names = [name for name in dir(attributes) if name.startswith("ATTR_")]
        assert names
        for name in names:
            assert getattr(attributes, name).startswith("clustershift.")

    def test_attribute_values_are_unique(self):
        values = [getattr(attributes, n) for n in dir(attributes) if n.startswith("ATTR_")]
        assert len(values) == len(set(values))

    def test_reexported_from_package(self):
        assert observability.ATTR_WORKLOAD_NAME == attributes.ATTR_WORKLOAD_NAME
        assert observability.ATTR_MIGRATION_STATE == attributes.ATTR_MIGRATION_STATE
