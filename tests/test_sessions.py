from todo_api.security import hash_password, verify_password
from todo_api.sessions import PRUNE_INTERVAL, InMemorySessionStore, SessionSigner


class Ticker:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_session_lifecycle():
    store = InMemorySessionStore(max_age=60, clock=Ticker())
    sid = store.create(7)
    assert store.get(sid) == 7
    assert store.destroy(sid) is True
    assert store.get(sid) is None
    assert store.destroy(sid) is False


def test_sessions_expire():
    clock = Ticker()
    store = InMemorySessionStore(max_age=60, clock=clock)
    sid = store.create(1)
    clock.now += 59
    assert store.get(sid) == 1
    clock.now += 1
    assert store.get(sid) is None


def test_expired_sessions_are_pruned():
    clock = Ticker()
    store = InMemorySessionStore(max_age=10, clock=clock)
    for user_id in range(3):
        store.create(user_id)
    clock.now += PRUNE_INTERVAL
    live = store.create(99)
    assert len(store) == 1
    assert store.get(live) == 99


def test_signer_round_trip_and_tamper():
    signer = SessionSigner("secret", max_age=60)
    token = signer.sign("abc")
    assert signer.unsign(token) == "abc"
    assert signer.unsign(token + "x") is None
    assert SessionSigner("other-secret", max_age=60).unsign(token) is None
    assert signer.unsign("garbage") is None


def test_password_hashing():
    hashed = hash_password("wonderland")
    assert hashed != "wonderland"
    assert verify_password("wonderland", hashed)
    assert not verify_password("Wonderland", hashed)
    assert not verify_password("wonderland", "not-a-bcrypt-hash")
