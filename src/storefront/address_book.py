"""Address book storage for storefront."""

from __future__ import annotations

import copy
import logging
import threading

from .errors import AddressNotFoundError, FormValidationError
from .models import ADDRESS_TYPES, Address, _generate_id
from .storage import ADDRESSES_KEY, Storage

logger = logging.getLogger(__name__)

# Saved for a customer who has never stored an address
DEFAULT_ADDRESS = {
    "type": "shipping",
    "is_default": True,
    "full_name": "Juan Dela Cruz",
    "contact_number": "+63 917 123 4567",
    "street_address": "123 Marble Street",
    "barangay": "San Lorenzo",
    "city": "Makati",
    "province": "Metro Manila",
    "postal_code": "1223",
    "label": "Home",
}


class AddressBook:
    """Manages saved shipping and billing addresses.

    Within each address type at most one address is the default. A book
    opened over storage that has never held addresses starts with
    ``DEFAULT_ADDRESS``; an emptied book stays empty.
    """

    def __init__(self, storage: Storage, lock: threading.RLock | None = None):
        self._storage = storage
        self._lock = lock if lock is not None else threading.RLock()
        saved = storage.get(ADDRESSES_KEY)
        if saved is None:
            self._addresses = [Address.from_dict({**DEFAULT_ADDRESS, "id": _generate_id("addr_")})]
            self._save()
        else:
            self._addresses = [Address.from_dict(d) for d in saved]

    def _save(self) -> None:
        self._storage.set(ADDRESSES_KEY, [a.to_dict() for a in self._addresses])

    def _clear_default(self, address_type: str) -> None:
        for a in self._addresses:
            if a.type == address_type:
                a.is_default = False

    @staticmethod
    def _check_type(address_type: str) -> None:
        if address_type not in ADDRESS_TYPES:
            raise FormValidationError(
                "address", {"type": f"must be one of: {', '.join(ADDRESS_TYPES)}"}
            )

    def list(self, address_type: str | None = None) -> list[Address]:
        """
        List saved addresses.

        Args:
            address_type: If given, only addresses of that type.
        """
        return [
            copy.deepcopy(a)
            for a in self._addresses
            if address_type is None or a.type == address_type
        ]

    def get(self, address_id: str) -> Address:
        """
        Get an address by ID.

        Raises:
            AddressNotFoundError: If address doesn't exist.
        """
        for a in self._addresses:
            if a.id == address_id:
                return copy.deepcopy(a)
        raise AddressNotFoundError(address_id)

    def get_default(self, address_type: str) -> Address | None:
        """The default address of a type, if one is set."""
        for a in self._addresses:
            if a.type == address_type and a.is_default:
                return copy.deepcopy(a)
        return None

    def add(self, address: Address) -> Address:
        """
        Save a new address under a fresh ID.

        If the address is marked default, every other address of the same
        type loses its default flag first.

        Returns:
            The stored address.
        """
        self._check_type(address.type)
        new = copy.deepcopy(address)
        new.id = _generate_id("addr_")
        with self._lock:
            if new.is_default:
                self._clear_default(new.type)
            self._addresses.append(new)
            self._save()
        logger.info("Address %s added (%s, default=%s)", new.id, new.type, new.is_default)
        return copy.deepcopy(new)

    def update(self, address: Address) -> Address:
        """
        Replace a saved address.

        Raises:
            AddressNotFoundError: If address doesn't exist.
        """
        self._check_type(address.type)
        with self._lock:
            for i, existing in enumerate(self._addresses):
                if existing.id == address.id:
                    if address.is_default:
                        self._clear_default(address.type)
                    self._addresses[i] = copy.deepcopy(address)
                    self._save()
                    return copy.deepcopy(address)
        raise AddressNotFoundError(address.id)

    def set_default(self, address_id: str, address_type: str) -> None:
        """Make address_id the only default among addresses of address_type."""
        self._check_type(address_type)
        with self._lock:
            for a in self._addresses:
                if a.type == address_type:
                    a.is_default = a.id == address_id
            self._save()

    def delete(self, address_id: str) -> None:
        """
        Delete an address by ID.

        Deleting the default address leaves its type without a default.
        """
        with self._lock:
            self._addresses = [a for a in self._addresses if a.id != address_id]
            self._save()
