"""Customer account storage for storefront."""

from __future__ import annotations

import copy
import logging
import threading
from typing import Any

from .errors import NotSignedInError
from .forms import ProfileForm, parse_form
from .models import CustomerProfile
from .storage import PROFILE_KEY, Storage

logger = logging.getLogger(__name__)

# Signed in on first run, before anything has been stored
DEFAULT_PROFILE = {
    "id": "usr_001",
    "first_name": "Juan",
    "last_name": "Dela Cruz",
    "email": "juan.delacruz@multirich.ph",
    "phone": "+63 917 123 4567",
    "role": "admin",
    "company": "Multi-Rich Home Decors Inc.",
}

_MISSING = object()


class ProfileStore:
    """The signed-in customer, if any.

    Signing out is persisted as an explicit empty profile, so a signed-out
    customer stays signed out across restarts.
    """

    def __init__(self, storage: Storage, lock: threading.RLock | None = None):
        self._storage = storage
        self._lock = lock if lock is not None else threading.RLock()
        saved = storage.get(PROFILE_KEY, _MISSING)
        if saved is _MISSING:
            saved = DEFAULT_PROFILE
        self._profile = CustomerProfile.from_dict(saved) if saved else None

    def _save(self) -> None:
        self._storage.set(PROFILE_KEY, self._profile.to_dict() if self._profile else None)

    @property
    def profile(self) -> CustomerProfile | None:
        return copy.deepcopy(self._profile)

    @property
    def is_authenticated(self) -> bool:
        return self._profile is not None

    @property
    def is_complete(self) -> bool:
        return self._profile is not None and self._profile.is_complete

    def missing_fields(self) -> list[str]:
        """Fields still needed before the profile counts as complete."""
        if self._profile is None:
            return ["first_name", "last_name", "phone"]
        return [
            name
            for name in ("first_name", "last_name", "phone")
            if not getattr(self._profile, name)
        ]

    def sign_in(self, profile: CustomerProfile) -> CustomerProfile:
        """Replace the current customer."""
        with self._lock:
            self._profile = copy.deepcopy(profile)
            self._save()
        logger.info("Signed in as %s (complete=%s)", profile.email, profile.is_complete)
        return copy.deepcopy(profile)

    def update(self, changes: Any) -> CustomerProfile:
        """
        Change some of the signed-in customer's details.

        Args:
            changes: Mapping with any of first_name, last_name, phone and
                company. Other keys are ignored.

        Raises:
            NotSignedInError: If nobody is signed in.
            FormValidationError: If a supplied field is invalid.
        """
        form = parse_form(ProfileForm, changes, "profile")
        with self._lock:
            if self._profile is None:
                raise NotSignedInError("update your profile")
            for name, value in form.model_dump(exclude_none=True).items():
                setattr(self._profile, name, value)
            self._save()
            logger.info("Profile %s updated (complete=%s)", self._profile.id, self._profile.is_complete)
            return copy.deepcopy(self._profile)

    def sign_out(self) -> None:
        with self._lock:
            self._profile = None
            self._save()
        logger.info("Signed out")
