"""
Unit tests for change tracking.

Tests cover:
- Tracking of changed properties
- Nested containers and dotted labels
- The reserved $context key
- Ownership checks for ChainMap targets
- Warnings on replacing unsaved changes
"""

import logging
from collections import ChainMap

import pytest

from kvmodel.monitor import CONTEXT_KEY, ChangeContext, Monitor, monitor


class TestMonitor:
    """Tests for Monitor."""

    def test_tracks_changed_property(self):
        """Writing a new value tracks its name."""
        data = monitor({"a": 1})
        data["a"] = 2

        assert data.context.changed == {"a"}
        assert data.target == {"a": 2}

    def test_same_value_is_not_tracked(self):
        """Writing the current value tracks nothing."""
        data = monitor({"a": 1, "b": "x"})
        data["a"] = 1
        data["b"] = "x"

        assert data.context.changed == set()

    def test_equal_value_of_other_type_is_tracked(self):
        """1 and 1.0 are different values."""
        data = monitor({"a": 1})
        data["a"] = 1.0

        assert data.context.changed == {"a"}

    def test_new_property_is_tracked(self):
        """Adding a property tracks it."""
        data = monitor({})
        data["b"] = None

        assert data.context.changed == {"b"}

    def test_nested_change_tracked_once(self):
        """Nested writes are tracked with dotted labels exactly once."""
        data = monitor({"a": {"b": 1}}, recursive=True)

        data["a"]["b"] = 2
        assert data.context.changed == {"a.b"}

        data["a"]["b"] = 2
        assert data.context.changed == {"a.b"}

    def test_nested_wrappers_share_context(self):
        """Nested wrappers refer to the same context."""
        data = monitor({"a": {"b": {"c": 1}}}, recursive=True)
        nested = data["a"]["b"]

        assert isinstance(nested, Monitor)
        assert nested.context is data.context
        assert nested.prefix == "a.b."

    def test_non_recursive_returns_raw(self):
        """Without recursion nested containers are returned unwrapped."""
        inner = {"b": 1}
        data = monitor({"a": inner})

        assert data["a"] is inner

    def test_written_container_is_wrapped_eagerly(self):
        """Containers written are tracked below their label."""
        data = monitor({}, recursive=True)
        data["list"] = [1, 2]
        data["list"][0] = 5
        data["list"].append(3)

        assert data.context.changed == {"list", "list.0", "list.2"}
        assert data.target["list"] == [5, 2, 3]

    def test_list_index_out_of_range(self):
        """Lists can't be extended by assignment."""
        data = monitor([1])
        with pytest.raises(IndexError):
            data[3] = 1

    def test_list_delete_out_of_range_not_tracked(self):
        """Failing deletes from lists leave no change behind."""
        data = monitor([1, 2])
        with pytest.raises(IndexError):
            del data[5]

        assert not data.context.dirty
        assert data.target == [1, 2]

    def test_delete_is_tracked(self):
        """Deleting a property tracks it."""
        data = monitor({"a": 1})
        del data["a"]

        assert data.context.changed == {"a"}
        assert "a" not in data

    def test_context_key(self):
        """The reserved key reads the context without storing anything."""
        context = ChangeContext()
        data = monitor({"a": 1}, context=context)

        assert data[CONTEXT_KEY] is context
        assert data.get(CONTEXT_KEY) is context
        assert CONTEXT_KEY not in data

    def test_context_key_is_read_only(self):
        """Writing the reserved key fails without mutating anything."""
        data = monitor({"a": 1})

        with pytest.raises(TypeError):
            data[CONTEXT_KEY] = ChangeContext()

        assert data.target == {"a": 1}
        assert data.context.changed == set()

    def test_chainmap_inherited_is_not_tracked(self):
        """Replacing an inherited property isn't tracked."""
        data = monitor(ChainMap({"own": 1}, {"inherited": 1}))

        data["inherited"] = 2
        data["own"] = 2
        data["added"] = 3

        assert data.context.changed == {"own", "added"}

    def test_chainmap_tracked_when_not_just_owned(self):
        """Without just_owned all properties are tracked."""
        data = monitor(ChainMap({}, {"inherited": 1}), just_owned=False)
        data["inherited"] = 2

        assert data.context.changed == {"inherited"}

    def test_warns_on_overwriting_unsaved(self, caplog):
        """Replacing a changed value again logs a warning."""
        data = monitor({"a": 1})

        with caplog.at_level(logging.WARNING, logger="kvmodel.monitor"):
            data["a"] = 2
            assert not caplog.records
            data["a"] = 3

        assert len(caplog.records) == 1
        assert "a" in caplog.records[0].getMessage()

    def test_no_warning_when_disabled(self, caplog):
        """warn=False disables the warning."""
        data = monitor({"a": 1}, warn=False)

        with caplog.at_level(logging.WARNING, logger="kvmodel.monitor"):
            data["a"] = 2
            data["a"] = 3

        assert not caplog.records

    def test_commit_clears_changes(self):
        """Committing forgets all changes."""
        data = monitor({"a": 1})
        data["a"] = 2
        assert data.context.dirty

        data.context.commit()
        assert not data.context.dirty

    def test_rejects_scalars(self):
        """Only mappings and lists can be monitored."""
        with pytest.raises(TypeError):
            monitor(42)

    def test_mapping_protocol(self):
        """Monitor behaves like its target."""
        data = monitor({"a": 1, "b": 2})

        assert len(data) == 2
        assert list(data) == ["a", "b"]
        assert dict(data.items()) == {"a": 1, "b": 2}
        assert data == {"a": 1, "b": 2}
        assert data.get("missing", 5) == 5
