"""
Tests for SupervisorAssigner over the SQLAlchemy supervisor directory.
"""

import pytest

from debt_kernel.exceptions import NoActiveSupervisorsError
from debt_kernel.models.user import UserRole
from debt_kernel.repositories import SqlAlchemySupervisorDirectory
from debt_kernel.services.supervisor_assigner import AssignmentStrategy, SupervisorAssigner

from tests.conftest import add_supervisor


@pytest.fixture
def supervisors(session):
    """Three active supervisors in email order, plus noise that must be ignored."""
    ids = [
        add_supervisor(session, "ana@example.com"),
        add_supervisor(session, "bruno@example.com"),
        add_supervisor(session, "carla@example.com"),
    ]
    add_supervisor(session, "aaron@example.com", active=False)
    add_supervisor(session, "abby@example.com", role=UserRole.COLLECTOR)
    return ids


class TestDirectoryOrder:
    def test_active_supervisors_listed_by_email(self, session):
        zoe = add_supervisor(session, "zoe@example.com")
        ana = add_supervisor(session, "ana@example.com")
        mia = add_supervisor(session, "mia@example.com")
        assert SqlAlchemySupervisorDirectory(session).list_active_supervisors() == [ana, mia, zoe]


class TestFirstActive:
    def test_always_returns_first_active(self, session, supervisors):
        assigner = SupervisorAssigner(
            SqlAlchemySupervisorDirectory(session), AssignmentStrategy.FIRST_ACTIVE,
        )
        assert [assigner.assign() for _ in range(3)] == [supervisors[0]] * 3


class TestRoundRobin:
    def test_rotates_through_active_supervisors(self, session, supervisors):
        assigner = SupervisorAssigner(SqlAlchemySupervisorDirectory(session))
        picks = [assigner.assign() for _ in range(6)]
        assert picks == supervisors + supervisors

    def test_cursor_survives_new_assigner(self, session, supervisors):
        SupervisorAssigner(SqlAlchemySupervisorDirectory(session)).assign()
        second = SupervisorAssigner(SqlAlchemySupervisorDirectory(session)).assign()
        assert second == supervisors[1]

    def test_fresh_cursor_matches_first_active(self, session, supervisors):
        assert SupervisorAssigner(SqlAlchemySupervisorDirectory(session)).assign() == supervisors[0]


class TestNoSupervisors:
    @pytest.mark.parametrize("strategy", list(AssignmentStrategy))
    def test_raises_when_nobody_active(self, session, strategy):
        add_supervisor(session, "gone@example.com", active=False)
        assigner = SupervisorAssigner(SqlAlchemySupervisorDirectory(session), strategy)
        with pytest.raises(NoActiveSupervisorsError) as exc_info:
            assigner.assign()
        assert exc_info.value.code == "NO_ACTIVE_SUPERVISORS"
