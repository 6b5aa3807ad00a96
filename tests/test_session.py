import pytest

from conftest import BrokenStore, stored
from database import USER_KEY, MemoryKeyValueStore
from schemas import User, UserUpdate
from session import (
    DEFAULT_PHONE, IdentityProvider, SessionState, ValidationFailure, format_phone, validate_phone, verify_otp,
)


def test_farmer_login_gets_farm_defaults(store):
    session = SessionState(store)
    user = session.login("FARMER", "+91 9876543210")

    assert user.id == "f1"
    assert user.name == "Arjun Singh"
    assert user.phone == "+91 9876543210"
    assert user.land_size == "5.2"
    assert user.primary_crops == ("Wheat", "Potato")
    assert stored(store, USER_KEY)["landSize"] == "5.2"


def test_buyer_login_has_no_farm_fields(store):
    user = SessionState(store).login("BUYER")
    assert user.id == "b1"
    assert user.name == "Rahul Kumar"
    assert user.phone == DEFAULT_PHONE
    assert user.land_size is None
    assert user.primary_crops is None


def test_login_captures_current_language(store):
    session = SessionState(store)
    session.set_language("pa")
    assert session.login("FARMER").language == "pa"


def test_relogin_overwrites_session(store):
    session = SessionState(store)
    session.login("FARMER")
    session.login("BUYER")
    assert session.user.id == "b1"
    assert stored(store, USER_KEY)["id"] == "b1"


def test_update_profile_changes_only_given_fields(store):
    session = SessionState(store)
    before = session.login("FARMER").model_dump()

    updated = session.update_profile(UserUpdate(name="X"))

    after = updated.model_dump()
    assert after.pop("name") == "X"
    before.pop("name")
    assert after == before
    assert stored(store, USER_KEY)["name"] == "X"


def test_update_profile_accepts_camel_case(store):
    session = SessionState(store)
    session.login("FARMER")
    user = session.update_profile(UserUpdate.model_validate({"primaryCrops": ["Rice"], "landSize": "3"}))
    assert user.primary_crops == ("Rice",)
    assert user.land_size == "3"


def test_update_profile_without_user_is_noop(store):
    session = SessionState(store)
    assert session.update_profile(UserUpdate(name="X")) is None
    assert USER_KEY not in store.data


def test_logout_clears_memory_and_store(store):
    session = SessionState(store)
    session.login("BUYER")
    session.logout()
    assert session.user is None
    assert USER_KEY not in store.data
    session.logout()
    assert session.user is None


def test_logout_then_restart_is_logged_out(store):
    session = SessionState(store)
    session.login("FARMER")
    session.logout()
    assert SessionState(store).user is None


def test_session_is_restored(store):
    SessionState(store).login("FARMER", "+91 1234567890")
    restored = SessionState(store)
    assert restored.user.id == "f1"
    assert restored.user.phone == "+91 1234567890"
    assert restored.language == "en"


def test_corrupt_user_record_means_logged_out():
    assert SessionState(MemoryKeyValueStore({USER_KEY: "{oops"})).user is None
    assert SessionState(MemoryKeyValueStore({USER_KEY: '{"id": "f1"}'})).user is None


def test_set_language_needs_no_user(store):
    session = SessionState(store)
    session.set_language("hi")
    assert session.language == "hi"
    assert USER_KEY not in store.data


def test_persist_failure_keeps_user_in_memory():
    session = SessionState(BrokenStore())
    user = session.login("FARMER")
    assert session.user == user
    assert session.last_persisted is False


def test_custom_identity_provider(store):
    class Fixed(IdentityProvider):
        def identify(self, role, phone, language):
            return User(id="u-9", name="Test", role=role, language=language, phone=phone)

    user = SessionState(store, identity=Fixed()).login("GUEST", "+91 1111111111")
    assert user.id == "u-9"
    assert user.role == "GUEST"


@pytest.mark.parametrize("phone", ["98765", "98765432101", "98765abcde", ""])
def test_invalid_phone_rejected(phone):
    with pytest.raises(ValidationFailure, match="10-digit"):
        validate_phone(phone)


def test_phone_and_otp_accepted():
    assert format_phone(validate_phone(" 9876543210 ")) == "+91 9876543210"
    assert verify_otp("123456") == "123456"
    assert verify_otp("654321") == "654321"


@pytest.mark.parametrize("code", ["12345", "abcdef", ""])
def test_invalid_otp_rejected(code):
    with pytest.raises(ValidationFailure, match="Try 123456"):
        verify_otp(code)


def test_identity_provider_must_implement_identify():
    with pytest.raises(TypeError):
        IdentityProvider()
