import pytest
from django.test import SimpleTestCase, TransactionTestCase


@pytest.fixture(autouse=True)
def _simple_testcase_db_connection(request):
    """Match Django's test runner: SimpleTestCase may open (not query) a connection.

    Channels consumers call close_old_connections(), which pytest-django blocks
    outright unless the test database is set up and access is unblocked.
    """
    cls = getattr(request.node, "cls", None)
    if cls is None or not issubclass(cls, SimpleTestCase) or issubclass(cls, TransactionTestCase):
        yield
        return
    request.getfixturevalue("django_db_setup")
    blocker = request.getfixturevalue("django_db_blocker")
    with blocker.unblock():
        yield
