from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from app.core.exceptions import RepositoryException, ServiceException, SlotConflictException
from app.services.base import BaseService


class _DemoService(BaseService):
    @BaseService.measure_operation("demo_op")
    def run(self, fail: bool = False) -> str:
        if fail:
            raise SlotConflictException()
        return "done"


@pytest.fixture
def service() -> _DemoService:
    svc = _DemoService(MagicMock())
    svc.reset_metrics()
    return svc


class TestTransaction:
    def test_commits_on_success(self, service) -> None:
        with service.transaction():
            pass
        service.db.commit.assert_called_once()
        service.db.rollback.assert_not_called()

    def test_storage_error_becomes_internal_error(self, service) -> None:
        with pytest.raises(ServiceException) as exc_info:
            with service.transaction():
                raise OperationalError("SELECT 1", {}, Exception("connection reset"))
        assert exc_info.value.code == "INTERNAL_ERROR"
        service.db.rollback.assert_called_once()
        service.db.commit.assert_not_called()

    def test_repository_error_becomes_internal_error(self, service) -> None:
        with pytest.raises(ServiceException):
            with service.transaction():
                raise RepositoryException("insert failed")
        service.db.rollback.assert_called_once()

    def test_domain_errors_propagate_unchanged(self, service) -> None:
        with pytest.raises(SlotConflictException):
            with service.transaction():
                raise SlotConflictException()
        service.db.rollback.assert_called_once()


class TestMeasureOperation:
    def test_records_success_and_failure(self, service) -> None:
        assert service.run() == "done"
        with pytest.raises(SlotConflictException):
            service.run(fail=True)

        metrics = service.get_metrics()["demo_op"]
        assert metrics["count"] == 2
        assert metrics["success_count"] == 1
        assert metrics["failure_count"] == 1
        assert metrics["success_rate"] == 0.5

    def test_reset_metrics(self, service) -> None:
        service.run()
        service.reset_metrics()
        assert service.get_metrics() == {}
