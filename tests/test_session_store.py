from app.core.session_store import CredentialStore, encode_credentials


def test_encode_credentials_is_basic_auth_base64():
    assert encode_credentials("admin", "secreto") == "YWRtaW46c2VjcmV0bw=="


def test_store_get_and_clear():
    store = CredentialStore()
    store.store("abc", "token", {"username": "admin"})
    assert store.get_credentials("abc") == "token"
    assert store.get("abc").user == {"username": "admin"}
    assert store.get_credentials(None) is None
    store.clear("abc")
    store.clear("unknown")
    assert store.get("abc") is None


def test_idle_entries_expire():
    now = [0.0]
    store = CredentialStore(idle_ttl=60, clock=lambda: now[0])
    store.store("active", "t1")
    store.store("idle", "t2")
    now[0] = 50
    assert store.get_credentials("active") == "t1"
    now[0] = 100
    assert store.get_credentials("idle") is None
    assert store.get_credentials("active") == "t1"
    assert len(store) == 1
