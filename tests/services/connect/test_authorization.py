"""Tests for permission checks and grant flows."""

from unittest.mock import MagicMock

import pytest

from healthbridge.services.connect.authorization import (
    AuthorizationStatus,
    authorize,
    check_permissions,
)
from healthbridge.services.connect.errors import BackendError, UnsupportedDataTypeError
from healthbridge.services.connect.stores import InMemoryHealthStore

READ_STEPS = "android.permission.health.READ_STEPS"
WRITE_STEPS = "android.permission.health.WRITE_STEPS"
READ_WEIGHT = "android.permission.health.READ_WEIGHT"
WRITE_WEIGHT = "android.permission.health.WRITE_WEIGHT"


class TestCheckPermissions:
    """Tests for the pure permission comparison."""

    def test_all_granted(self):
        """Test that fully granted sets report GRANTED."""
        check = check_permissions(["steps"], ["steps"], {READ_STEPS, WRITE_STEPS}, False)
        assert check.status is AuthorizationStatus.GRANTED
        assert check.missing == frozenset()

    def test_empty_request_is_granted(self):
        """Test that requesting nothing is trivially granted."""
        assert check_permissions([], [], set(), False).status is AuthorizationStatus.GRANTED

    def test_denied_without_request(self):
        """Test that a missing permission without allow_request is DENIED."""
        check = check_permissions(["steps"], ["weight"], {READ_STEPS}, False)
        assert check.status is AuthorizationStatus.DENIED
        assert check.missing == frozenset({WRITE_WEIGHT})

    def test_short_circuits_on_first_missing(self):
        """Test that later data types are not resolved once one is missing."""
        check = check_permissions(["steps", "not_a_type"], [], set(), False)
        assert check.status is AuthorizationStatus.DENIED
        assert check.missing == frozenset({READ_STEPS})

    def test_collects_all_missing_with_request(self):
        """Test that allow_request gathers every missing permission."""
        check = check_permissions(["steps", "weight"], ["weight"], {READ_STEPS}, True)
        assert check.status is AuthorizationStatus.REQUEST_REQUIRED
        assert check.missing == frozenset({READ_WEIGHT, WRITE_WEIGHT})

    def test_unknown_type_with_request_fails(self):
        """Test that an unknown type fails when every type must be resolved."""
        with pytest.raises(UnsupportedDataTypeError):
            check_permissions(["steps", "not_a_type"], [], set(), True)


class TestAuthorize:
    """Tests for authorize() against a store."""

    def test_granted_without_store_request(self):
        """Test that no grant flow is started when everything is held."""
        store = MagicMock()
        store.get_granted_permissions.return_value = {READ_STEPS}

        assert authorize(store, ["steps"], [], allow_request=True) is True
        store.request_permissions.assert_not_called()

    def test_check_never_requests(self):
        """Test that a plain check returns False without prompting."""
        store = MagicMock()
        store.get_granted_permissions.return_value = set()

        assert authorize(store, ["steps"], [], allow_request=False) is False
        store.request_permissions.assert_not_called()

    def test_single_request_for_all_missing(self):
        """Test that one grant flow requests every missing permission."""
        store = MagicMock()
        store.get_granted_permissions.return_value = set()
        store.request_permissions.return_value = {READ_STEPS}

        assert authorize(store, ["steps"], ["weight"], allow_request=True) is True
        store.request_permissions.assert_called_once_with({READ_STEPS, WRITE_WEIGHT})

    def test_declined_request(self):
        """Test that an empty grant result reports not granted."""
        store = InMemoryHealthStore(auto_grant=False)

        assert authorize(store, ["steps"], [], allow_request=True) is False
        assert store.get_granted_permissions() == set()

    def test_auto_grant_store(self):
        """Test that the in-memory store grants requested permissions."""
        store = InMemoryHealthStore()

        assert authorize(store, ["steps"], ["steps"], allow_request=True) is True
        assert store.get_granted_permissions() == {READ_STEPS, WRITE_STEPS}
        assert authorize(store, ["steps"], ["steps"], allow_request=False) is True

    def test_store_failure_surfaces_as_backend_error(self):
        """Test that store exceptions are wrapped with their message."""
        store = MagicMock()
        store.get_granted_permissions.side_effect = RuntimeError("service bound failed")

        with pytest.raises(BackendError, match="service bound failed"):
            authorize(store, ["steps"], [], allow_request=False)
