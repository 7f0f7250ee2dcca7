import logging

from ekoserver.ctxkeys import ContextFilter, ContextKey, value, with_value, wrap_log_handler


def _record():
    return logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)


def test_filter_uses_key_names_as_attributes():
    record = _record()
    with with_value(ContextKey.USER_ID, 5), with_value(ContextKey.IP_ADDR, "10.0.0.1:1"):
        assert ContextFilter().filter(record) is True
    assert record.user_id == 5
    assert record.ip_addr == "10.0.0.1:1"


def test_with_value_is_scoped_and_nests():
    assert value(ContextKey.USER_ID) is None
    with with_value(ContextKey.USER_ID, 42):
        assert value(ContextKey.USER_ID) == 42
        with with_value(ContextKey.USER_ID, 43):
            assert value(ContextKey.USER_ID) == 43
        assert value(ContextKey.USER_ID) == 42
        assert value(ContextKey.IP_ADDR) is None
    assert value(ContextKey.USER_ID) is None


def test_filter_adds_only_bound_values():
    record = _record()
    with with_value(ContextKey.IP_ADDR, "127.0.0.1:5000"):
        assert ContextFilter().filter(record) is True
    assert record.ip_addr == "127.0.0.1:5000"
    assert not hasattr(record, "user_id")


def test_wrapped_handler_sees_context():
    records = []

    class _Collect(logging.Handler):
        def emit(self, record):
            records.append(record)

    collector = _Collect()
    handler = wrap_log_handler(collector)
    assert handler is collector
    logger = logging.getLogger("ekoserver.tests.ctxkeys")
    logger.propagate = False
    logger.setLevel(logging.INFO)
    logger.addHandler(handler)
    try:
        with with_value(ContextKey.USER_ID, 7):
            logger.info("hello")
        logger.info("outside")
    finally:
        logger.removeHandler(handler)
    assert records[0].user_id == 7
    assert not hasattr(records[1], "user_id")