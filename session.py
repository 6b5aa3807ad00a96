import logging
import re
from abc import ABC, abstractmethod
from typing import Optional

from pydantic import TypeAdapter

from database import KeyValueStore, USER_KEY, load_record
from schemas import Language, Role, User, UserUpdate

logger = logging.getLogger(__name__)

DEFAULT_PHONE = "+91 98765 43210"
DEFAULT_LOCATION = "Punjab, India"
DEMO_OTP = "123456"


class ValidationFailure(ValueError):
    """Input rejected locally; the message is meant for the end user."""


def validate_phone(digits: str) -> str:
    digits = (digits or "").strip()
    if not re.fullmatch(r"\d{10}", digits):
        raise ValidationFailure("Please enter a valid 10-digit number")
    return digits


def verify_otp(code: str) -> str:
    # Local check only: any 6-digit code passes, DEMO_OTP is the hint shown
    code = (code or "").strip()
    if code != DEMO_OTP and not re.fullmatch(r"\d{6}", code):
        raise ValidationFailure(f"Invalid Code. Try {DEMO_OTP}")
    return code


def format_phone(digits: str) -> str:
    return f"+91 {digits}"


class IdentityProvider(ABC):
    @abstractmethod
    def identify(self, role: Role, phone: Optional[str], language: Language) -> User:
        ...


class MockIdentityProvider(IdentityProvider):
    """Fixed demo identity per role until a real provider exists."""

    def identify(self, role: Role, phone: Optional[str], language: Language) -> User:
        farmer = role == "FARMER"
        return User(
            id="f1" if farmer else "b1",
            name="Arjun Singh" if farmer else "Rahul Kumar",
            role=role,
            language=language,
            phone=phone or DEFAULT_PHONE,
            location=DEFAULT_LOCATION,
            land_size="5.2" if farmer else None,
            primary_crops=["Wheat", "Potato"] if farmer else None,
        )


class SessionState:
    """Owns the active user (stored under km_user) and the display language."""

    def __init__(self, store: KeyValueStore, identity: Optional[IdentityProvider] = None):
        self.store = store
        self.identity = identity or MockIdentityProvider()
        self.language: Language = "en"
        self.user: Optional[User] = load_record(store, USER_KEY, TypeAdapter(User), None)
        self.last_persisted = True
        if self.user:
            logger.info("Restored session for %s (%s)", self.user.id, self.user.role)

    def _persist(self) -> bool:
        self.last_persisted = self.store.write(USER_KEY, self.user.model_dump(mode="json", by_alias=True))
        return self.last_persisted

    def login(self, role: Role, phone: Optional[str] = None) -> User:
        if self.user is not None:
            logger.warning("Login as %s replaces active session of %s", role, self.user.id)
        self.user = self.identity.identify(role, phone, self.language)
        self._persist()
        return self.user

    def update_profile(self, changes: UserUpdate) -> Optional[User]:
        if self.user is None:
            return None
        merged = self.user.model_dump()
        merged.update(changes.model_dump(exclude_unset=True, exclude_none=True))
        self.user = User.model_validate(merged)
        self._persist()
        return self.user

    def logout(self) -> None:
        if self.user is None:
            self.last_persisted = True
            return
        self.user = None
        self.last_persisted = self.store.remove(USER_KEY)

    def set_language(self, language: Language) -> None:
        self.language = language
