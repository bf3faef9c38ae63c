"""
podium/entry_requirement.py - Pluggable entry gating.

An EntryValidator decides who may enter a tournament, how many times, and
whether an existing entry should be banned later. It's a protocol like any
other: implement the seven methods and hand it to the engine.

Three built-in requirement kinds (the closed union EntryRequirementType):

    TokenRequirement      hold a specific NFT          -> TokenGate
    AllowlistRequirement  be on a static address list  -> AllowlistGate
    ExtensionRequirement  ask an external validator    -> ExtensionGate (forwards)

Built-in gates count entries per (context, proof) and enforce the
requirement's entry_limit (0 = unlimited).
"""

import copy
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from podium.errors import PodiumError, ValidatorCallError

logger = logging.getLogger(__name__)


# ============================================================================
# Proofs
# ============================================================================


@dataclass(frozen=True)
class NFTProof:
    """Player claims to own token_id of the gating collection."""

    token_id: int


@dataclass(frozen=True)
class AddressProof:
    """Player claims to be this allowlisted address."""

    address: str


@dataclass(frozen=True)
class ExtensionProof:
    """Opaque proof payload for an external validator."""

    data: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", tuple(self.data))


QualificationProof = NFTProof | AddressProof | ExtensionProof


# ============================================================================
# Requirements
# ============================================================================


@dataclass(frozen=True)
class TokenRequirement:
    token_address: str


@dataclass(frozen=True)
class AllowlistRequirement:
    addresses: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "addresses", tuple(self.addresses))


@dataclass(frozen=True)
class ExtensionRequirement:
    address: str
    config: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "config", tuple(self.config))


EntryRequirementType = TokenRequirement | AllowlistRequirement | ExtensionRequirement


@dataclass(frozen=True)
class EntryRequirement:
    entry_requirement_type: EntryRequirementType
    entry_limit: int = 0  # max entries per qualification; 0 = unlimited


# ============================================================================
# Protocols
# ============================================================================


class EntryValidator(Protocol):
    """Capability every gating strategy provides."""

    def registration_only(self) -> bool: ...

    def valid_entry(self, context_id: int, player: str, proof: QualificationProof | None) -> bool: ...

    def should_ban(
        self, context_id: int, token_id: int, owner: str, proof: QualificationProof | None
    ) -> bool: ...

    def entries_left(
        self, context_id: int, player: str, proof: QualificationProof | None
    ) -> int | None: ...

    def add_config(self, context_id: int, entry_limit: int, config: tuple[int, ...]) -> None: ...

    def add_entry(
        self, context_id: int, token_id: int, player: str, proof: QualificationProof | None
    ) -> None: ...

    def remove_entry(
        self, context_id: int, token_id: int, player: str, proof: QualificationProof | None
    ) -> None: ...


class TokenOwnership(Protocol):
    """Read-only NFT ownership lookup (satisfied by tournaments.tokens ledgers)."""

    def owner_of(self, token_address: str, token_id: int) -> str: ...


ExtensionResolver = Callable[[str], EntryValidator]


# ============================================================================
# Built-in gates
# ============================================================================


class CountingGate:
    """Shared bookkeeping: entry limits per context, entry counts per (context, proof)."""

    def __init__(self):
        self._limits: dict[int, int] = {}
        self._counts: dict[tuple[int, Any], int] = {}

    def __deepcopy__(self, memo):
        # Copy the counters only; token ledgers and external validators are shared
        clone = copy.copy(self)
        clone._limits = dict(self._limits)
        clone._counts = dict(self._counts)
        memo[id(self)] = clone
        return clone

    def registration_only(self) -> bool:
        return True

    def add_config(self, context_id: int, entry_limit: int, config: tuple[int, ...] = ()) -> None:
        self._limits[context_id] = entry_limit

    def entry_count(self, context_id: int, proof: QualificationProof | None) -> int:
        return self._counts.get((context_id, proof), 0)

    def entries_left(
        self, context_id: int, player: str, proof: QualificationProof | None
    ) -> int | None:
        limit = self._limits.get(context_id, 0)
        if limit == 0:
            return None
        return max(0, limit - self.entry_count(context_id, proof))

    def add_entry(
        self, context_id: int, token_id: int, player: str, proof: QualificationProof | None
    ) -> None:
        key = (context_id, proof)
        self._counts[key] = self._counts.get(key, 0) + 1

    def remove_entry(
        self, context_id: int, token_id: int, player: str, proof: QualificationProof | None
    ) -> None:
        key = (context_id, proof)
        self._counts[key] = max(0, self._counts.get(key, 0) - 1)


class TokenGate(CountingGate):
    """Entry requires owning a token of `token_address`; entries counted per token id."""

    def __init__(self, token_address: str, tokens: TokenOwnership):
        super().__init__()
        self.token_address = token_address
        self.tokens = tokens

    def valid_entry(self, context_id: int, player: str, proof: QualificationProof | None) -> bool:
        if not isinstance(proof, NFTProof):
            return False
        owner = self.tokens.owner_of(self.token_address, proof.token_id)
        return _same_address(owner, player)

    def should_ban(
        self, context_id: int, token_id: int, owner: str, proof: QualificationProof | None
    ) -> bool:
        # Qualifying NFT moved away from whoever holds the game token now
        return not self.valid_entry(context_id, owner, proof)

    def __repr__(self) -> str:
        return f"TokenGate({self.token_address})"


class AllowlistGate(CountingGate):
    """Entry requires the player to be on a fixed address list."""

    def __init__(self, addresses: tuple[str, ...]):
        super().__init__()
        self.addresses = frozenset(a.lower() for a in addresses)

    def valid_entry(self, context_id: int, player: str, proof: QualificationProof | None) -> bool:
        if not isinstance(proof, AddressProof):
            return False
        return proof.address.lower() in self.addresses and _same_address(proof.address, player)

    def should_ban(
        self, context_id: int, token_id: int, owner: str, proof: QualificationProof | None
    ) -> bool:
        return not self.valid_entry(context_id, owner, proof)

    def __repr__(self) -> str:
        return f"AllowlistGate({len(self.addresses)} addresses)"


class ExtensionGate(CountingGate):
    """Forwards every capability call to an external validator.

    Any exception from the external side surfaces as ValidatorCallError so the
    engine rolls back the whole call. Entry counts are mirrored locally for the
    qualification view; the limit itself is the extension's business.
    """

    def __init__(self, address: str, validator: EntryValidator):
        super().__init__()
        self.address = address
        self.validator = validator

    def _call(self, method: str, *args):
        try:
            return getattr(self.validator, method)(*args)
        except PodiumError:
            raise
        except Exception as e:
            raise ValidatorCallError(f"extension {self.address}.{method} failed: {e}") from e

    def registration_only(self) -> bool:
        return bool(self._call("registration_only"))

    def valid_entry(self, context_id: int, player: str, proof: QualificationProof | None) -> bool:
        return bool(self._call("valid_entry", context_id, player, proof))

    def should_ban(
        self, context_id: int, token_id: int, owner: str, proof: QualificationProof | None
    ) -> bool:
        return bool(self._call("should_ban", context_id, token_id, owner, proof))

    def entries_left(
        self, context_id: int, player: str, proof: QualificationProof | None
    ) -> int | None:
        return self._call("entries_left", context_id, player, proof)

    def add_config(self, context_id: int, entry_limit: int, config: tuple[int, ...] = ()) -> None:
        super().add_config(context_id, entry_limit, config)
        self._call("add_config", context_id, entry_limit, config)

    def add_entry(
        self, context_id: int, token_id: int, player: str, proof: QualificationProof | None
    ) -> None:
        self._call("add_entry", context_id, token_id, player, proof)
        super().add_entry(context_id, token_id, player, proof)

    def remove_entry(
        self, context_id: int, token_id: int, player: str, proof: QualificationProof | None
    ) -> None:
        self._call("remove_entry", context_id, token_id, player, proof)
        super().remove_entry(context_id, token_id, player, proof)

    def __repr__(self) -> str:
        return f"ExtensionGate({self.address})"


# ============================================================================
# Factory
# ============================================================================


def build_gate(
    requirement: EntryRequirement,
    context_id: int,
    tokens: TokenOwnership,
    resolve_extension: ExtensionResolver | None = None,
) -> CountingGate:
    """Instantiate and configure the gate for a tournament's entry requirement."""
    kind = requirement.entry_requirement_type

    if isinstance(kind, TokenRequirement):
        gate = TokenGate(kind.token_address, tokens)
        config: tuple[int, ...] = ()
    elif isinstance(kind, AllowlistRequirement):
        gate = AllowlistGate(kind.addresses)
        config = ()
    elif isinstance(kind, ExtensionRequirement):
        if resolve_extension is None:
            raise ValueError(f"no extension resolver configured for {kind.address}")
        gate = ExtensionGate(kind.address, resolve_extension(kind.address))
        config = kind.config
    else:
        raise TypeError(f"unknown entry requirement {kind!r}")

    gate.add_config(context_id, requirement.entry_limit, config)
    logger.debug(f"Context {context_id}: entry gate {gate!r}, limit {requirement.entry_limit}")
    return gate


def _same_address(a: str | None, b: str | None) -> bool:
    return a is not None and b is not None and a.lower() == b.lower()
