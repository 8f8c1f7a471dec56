"""
OrderDesk Backend: Inter-Module Capability Registry
===================================================

What:  Narrow abstract interfaces one module exposes to another, and the
       write-once registry that holds their implementations.
How:   Each module registers an adapter implementing its capability
       interfaces during application start-up. Consumers receive the registry
       and call through a slot; they never import the other module's service.
Who:   Populated by `create_app()` (user module first, then order module);
       read by OrderService.
When:  Slots are written once at start-up; `freeze()` ends the writing
       phase and every later access is a read.

Slots:
    user_verifier   UserVerifier    existence check only
    user_getter     UserGetter      lookup returning a UserInfo
    user_service    UserCapability  both of the above, composed automatically
    order_service   OrderLookup     lookup returning an OrderInfo

    An empty slot means the module is absent. Enrichment callers treat that
    as a silent no-op; correctness-critical callers decide explicitly.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Lookup Records
# ══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class UserInfo:
    """What other modules may know about a user."""

    id: str
    name: str
    email: str
    status: int


@dataclass(frozen=True)
class OrderInfo:
    """What other modules may know about an order."""

    id: str
    user_id: str
    product_name: str
    quantity: int
    amount: Decimal
    status: int


# ══════════════════════════════════════════════════════════════════════════
# Capability Interfaces
# ══════════════════════════════════════════════════════════════════════════

class UserVerifier(ABC):
    @abstractmethod
    async def verify_user_exists(self, user_id: str) -> None:
        """
        Return normally when the user exists.

        Raises:
            NotFoundError: code USER_NOT_FOUND
            InternalError: the lookup itself failed
        """
        ...


class UserGetter(ABC):
    @abstractmethod
    async def get_user_by_id(self, user_id: str) -> UserInfo:
        """Same failure vocabulary as `UserVerifier.verify_user_exists`."""
        ...


class UserCapability(UserVerifier, UserGetter):
    """Verification and lookup together."""


class OrderLookup(ABC):
    @abstractmethod
    async def get_by_id(self, order_id: str) -> OrderInfo:
        """Raises NotFoundError when the order does not exist."""
        ...


class CombinedUserCapability(UserCapability):
    """UserCapability assembled from two independently registered parts."""

    def __init__(self, verifier: UserVerifier, getter: UserGetter):
        self._verifier = verifier
        self._getter = getter

    async def verify_user_exists(self, user_id: str) -> None:
        await self._verifier.verify_user_exists(user_id)

    async def get_user_by_id(self, user_id: str) -> UserInfo:
        return await self._getter.get_user_by_id(user_id)


# ══════════════════════════════════════════════════════════════════════════
# Registry
# ══════════════════════════════════════════════════════════════════════════

class RegistryError(RuntimeError):
    """A slot was written twice, or written after the registry was frozen."""


class ModuleRegistry:
    """
    Write-once-then-read-many container of capability slots.

    Writes take a lock; reads are plain attribute loads, which is safe
    because a slot changes at most once and only before `freeze()`.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._frozen = False
        self._user_verifier: Optional[UserVerifier] = None
        self._user_getter: Optional[UserGetter] = None
        self._user_service: Optional[UserCapability] = None
        self._order_service: Optional[OrderLookup] = None

    # ── Reads ─────────────────────────────────────────────────────────────
    @property
    def user_verifier(self) -> Optional[UserVerifier]:
        return self._user_verifier

    @property
    def user_getter(self) -> Optional[UserGetter]:
        return self._user_getter

    @property
    def user_service(self) -> Optional[UserCapability]:
        return self._user_service

    @property
    def order_service(self) -> Optional[OrderLookup]:
        return self._order_service

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ── Writes ────────────────────────────────────────────────────────────
    def _assign(self, slot: str, value: object) -> None:
        if value is None:
            raise RegistryError(f"Cannot register None for {slot}")
        with self._lock:
            if self._frozen:
                raise RegistryError(f"Registry is frozen; cannot set {slot}")
            if getattr(self, f"_{slot}") is not None:
                raise RegistryError(f"{slot} is already registered")
            setattr(self, f"_{slot}", value)
            self._compose_user_service()
        logger.debug("Registered %s: %s", slot, type(value).__name__)

    def _compose_user_service(self) -> None:
        # Called with the lock held.
        if self._user_service is not None:
            return
        if self._user_verifier is None or self._user_getter is None:
            return
        if self._user_verifier is self._user_getter and isinstance(
            self._user_verifier, UserCapability
        ):
            self._user_service = self._user_verifier
        else:
            self._user_service = CombinedUserCapability(self._user_verifier, self._user_getter)

    def set_user_verifier(self, verifier: UserVerifier) -> None:
        self._assign("user_verifier", verifier)

    def set_user_getter(self, getter: UserGetter) -> None:
        self._assign("user_getter", getter)

    def register_user_module(self, capability: UserCapability) -> None:
        """Fill both user slots (and thereby the combined slot) with one adapter."""
        self.set_user_verifier(capability)
        self.set_user_getter(capability)

    def set_order_service(self, lookup: OrderLookup) -> None:
        self._assign("order_service", lookup)

    def freeze(self) -> None:
        with self._lock:
            self._frozen = True
