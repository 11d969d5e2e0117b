"""Tests for custom exception hierarchy."""

import pytest

from core.exceptions import (
    ClusterNotFoundError,
    GravityChatException,
    MessageValidationError,
    ParticipantNotFoundError,
    TransportException,
    UniverseException,
)


class TestExceptionHierarchy:
    """Test exception inheritance hierarchy."""

    def test_gravitychat_exception_is_base(self):
        assert issubclass(UniverseException, GravityChatException)
        assert issubclass(TransportException, GravityChatException)

    def test_universe_exception_hierarchy(self):
        assert issubclass(ParticipantNotFoundError, UniverseException)
        assert issubclass(ClusterNotFoundError, UniverseException)

    def test_transport_exception_hierarchy(self):
        assert issubclass(MessageValidationError, TransportException)
        assert not issubclass(MessageValidationError, UniverseException)


class TestExceptionDetails:
    """Exceptions carry the offending identifier."""

    def test_participant_not_found(self):
        error = ParticipantNotFoundError("conn-1")
        assert error.participant_id == "conn-1"
        assert "conn-1" in str(error)

    def test_cluster_not_found(self):
        error = ClusterNotFoundError("abc")
        assert error.cluster_id == "abc"
        assert str(error) == "Cluster not found: abc"

    def test_catch_by_base(self):
        with pytest.raises(GravityChatException):
            raise ClusterNotFoundError("abc")
