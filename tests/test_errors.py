from types import SimpleNamespace

from sqlalchemy.exc import OperationalError, ProgrammingError

from app.errors import MSG_GENERIC_FAILURE, MSG_PERMISSION_DENIED, database_error_to_http


def test_postgres_insufficient_privilege_is_forbidden():
    exc = ProgrammingError("INSERT INTO slots", {}, SimpleNamespace(pgcode="42501"))

    http_exc = database_error_to_http(exc)

    assert (http_exc.status_code, http_exc.detail) == (403, MSG_PERMISSION_DENIED)


def test_permission_denied_message_is_forbidden():
    exc = ProgrammingError("UPDATE slots", {}, Exception("permission denied for table slots"))
    assert database_error_to_http(exc).status_code == 403


def test_other_failures_are_generic():
    exc = OperationalError("SELECT 1", {}, Exception("connection refused"))

    http_exc = database_error_to_http(exc)

    assert (http_exc.status_code, http_exc.detail) == (500, MSG_GENERIC_FAILURE)
