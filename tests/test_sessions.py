"""Unit tests for the per-browser form session store."""

from inspection_web.sessions import FormSessionStore


def test_same_cookie_same_manager():
    store = FormSessionStore("secret")
    manager, cookie = store.get_or_create(None)
    manager.start_create()

    again, _ = store.get_or_create(cookie)

    assert again is manager
    assert again.draft is not None


def test_tampered_cookie_starts_new_session():
    store = FormSessionStore("secret")
    manager, cookie = store.get_or_create(None)

    other, new_cookie = store.get_or_create(cookie + "x")

    assert other is not manager
    assert new_cookie != cookie


def test_cookie_from_other_secret_rejected():
    _, foreign = FormSessionStore("other-secret").get_or_create(None)
    store = FormSessionStore("secret")
    manager, cookie = store.get_or_create(None)

    other, _ = store.get_or_create(foreign)

    assert other is not manager


def test_clear_drops_drafts():
    store = FormSessionStore("secret")
    manager, cookie = store.get_or_create(None)
    store.clear()

    again, _ = store.get_or_create(cookie)
    assert again is not manager


def test_get_never_creates():
    store = FormSessionStore("secret")

    assert store.get(None) is None
    assert store.get("garbage") is None
    assert len(store) == 0


def test_discard_removes_manager():
    store = FormSessionStore("secret")
    manager, cookie = store.get_or_create(None)
    assert store.get(cookie) is manager

    store.discard(cookie)
    store.discard(None)

    assert store.get(cookie) is None
    assert len(store) == 0
