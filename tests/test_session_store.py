"""Cookie session store tests: TTL expiry and timer teardown."""

import time
from unittest.mock import MagicMock

import api.session as session


def _expire(sid: str) -> None:
    session._timestamps[sid] = time.time() - session.SESSION_TTL - 1


def test_put_and_get():
    sid = session.create_session()
    assert session.get(sid, "identity") is None
    session.put(sid, "identity", "someone")
    assert session.get(sid, "identity") == "someone"
    assert session.get("unknown", "identity", "fallback") == "fallback"


def test_reset_keeps_identity_and_abandons_controller():
    sid = session.create_session()
    controller = MagicMock()
    session.put(sid, "identity", "someone")
    session.put(sid, "controller", controller)

    session.reset(sid)

    controller.abandon.assert_called_once()
    assert session.get(sid, "controller") is None
    assert session.get(sid, "identity") == "someone"


def test_expired_session_is_dropped_on_access():
    sid = session.create_session()
    controller = MagicMock()
    session.put(sid, "controller", controller)
    _expire(sid)

    assert session.get_session(sid) is None
    controller.abandon.assert_called_once()


def test_cleanup_expired():
    live = session.create_session()
    stale = session.create_session()
    controller = MagicMock()
    session.put(stale, "controller", controller)
    _expire(stale)

    assert session.cleanup_expired() >= 1
    assert session.get_session(stale) is None
    assert session.get_session(live) is not None
    controller.abandon.assert_called_once()
