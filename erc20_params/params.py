"""
ERC-20 module parameters.

Every node must reach the same validation outcome for the same parameters,
so validation runs in a fixed order and stops at the first failure.
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, NamedTuple

import msgpack

from .address import Address, hex_to_address, validate_address
from .config import DEFAULT_CONFIG, ModuleConfig
from .errors import (
    DuplicatePrecompileError,
    InvalidAddressError,
    TypeMismatchError,
    UnknownParamKeyError,
    UnsortedPrecompilesError,
)

# Parameter store keys
PARAM_STORE_KEY_ENABLE_ERC20 = b"EnableErc20"
PARAM_STORE_KEY_DYNAMIC_PRECOMPILES = b"DynamicPrecompiles"
PARAM_STORE_KEY_NATIVE_PRECOMPILES = b"NativePrecompiles"
PARAM_STORE_KEY_PERMISSIONLESS_REGISTRATION = b"PermissionlessRegistration"


class ParamKind(Enum):
    BOOL = "bool"
    STRING_LIST = "string_list"


@dataclass(frozen=True)
class ParamValue:
    """A single parameter value tagged with the kind it claims to be."""
    kind: ParamKind
    value: object

    @classmethod
    def of_bool(cls, value) -> 'ParamValue':
        return cls(ParamKind.BOOL, value)

    @classmethod
    def of_string_list(cls, value) -> 'ParamValue':
        return cls(ParamKind.STRING_LIST, value)


class ParamSetPair(NamedTuple):
    key: bytes
    value: object
    validator: Callable


def validate_bool(value) -> None:
    """Raises TypeMismatchError unless value is a bool."""
    if not isinstance(value, bool):
        raise TypeMismatchError(f"invalid parameter type: {type(value).__name__}")


def _is_string_sequence(value) -> bool:
    return isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value)


def validate_precompiles(value) -> List[Address]:
    """
    Check that every precompile is a valid address and that the list is sorted.

    Sortedness is checked on the strings as given, not on their checksummed
    form. Returns the canonical addresses in input order.
    """
    if not _is_string_sequence(value):
        raise TypeMismatchError(
            f"invalid precompile slice type: {type(value).__name__}"
        )

    addresses = []
    for precompile in value:
        try:
            validate_address(precompile)
        except InvalidAddressError as e:
            raise InvalidAddressError(precompile) from e
        addresses.append(hex_to_address(precompile))

    # Sorted lists keep iteration order identical on every node. Equal
    # neighbours pass here and are reported by the uniqueness check.
    if any(a > b for a, b in zip(value, value[1:])):
        raise UnsortedPrecompilesError(value)

    return addresses


def validate_precompiles_uniqueness(addresses) -> None:
    """Raises DuplicatePrecompileError on the first repeated address."""
    if not isinstance(addresses, (list, tuple)) or not all(
            isinstance(a, Address) for a in addresses):
        raise TypeMismatchError(
            f"invalid precompile slice type: {type(addresses).__name__}"
        )

    seen = set()
    for address in addresses:
        # EIP-55 form so casing variants collide
        checksummed = address.hex()
        if checksummed in seen:
            raise DuplicatePrecompileError(address)
        seen.add(checksummed)


def _sorted_precompiles(value):
    if not isinstance(value, (list, tuple)):
        # Left as is for validate_precompiles to reject
        return value
    if not _is_string_sequence(value):
        return tuple(value)
    if isinstance(value, list):
        value.sort()
        return tuple(value)
    return tuple(sorted(value))


def _is_addr_included(addr: Address, str_addrs) -> bool:
    for sa in str_addrs:
        # Compare bytes, the strings may differ in EIP-55 casing
        if addr.to_bytes() == hex_to_address(sa).to_bytes():
            return True
    return False


# key -> (attribute, kind, validator)
_FIELDS = {
    PARAM_STORE_KEY_ENABLE_ERC20: ('enable_erc20', ParamKind.BOOL, validate_bool),
    PARAM_STORE_KEY_DYNAMIC_PRECOMPILES: (
        'dynamic_precompiles', ParamKind.STRING_LIST, validate_precompiles),
    PARAM_STORE_KEY_NATIVE_PRECOMPILES: (
        'native_precompiles', ParamKind.STRING_LIST, validate_precompiles),
    PARAM_STORE_KEY_PERMISSIONLESS_REGISTRATION: (
        'permissionless_registration', ParamKind.BOOL, validate_bool),
}

PARAM_STORE_KEYS = tuple(_FIELDS)


def _field(key: bytes):
    try:
        return _FIELDS[key]
    except KeyError:
        raise UnknownParamKeyError(key) from None


def _check_kind(key: bytes, kind: ParamKind, param_value) -> None:
    if not isinstance(param_value, ParamValue):
        raise TypeMismatchError(
            f"invalid parameter value type: {type(param_value).__name__}"
        )
    if param_value.kind is not kind:
        raise TypeMismatchError(
            f"parameter {key.decode()} expects {kind.value}, "
            f"got {param_value.kind.value}"
        )


def validate_param(key: bytes, param_value: ParamValue) -> None:
    """Validate a single field update addressed by its store key."""
    _, kind, validator = _field(key)
    _check_kind(key, kind, param_value)
    validator(param_value.value)


@dataclass(frozen=True)
class Params:
    """Parameter set of the ERC-20 module."""
    enable_erc20: bool
    native_precompiles: tuple
    dynamic_precompiles: tuple
    permissionless_registration: bool

    def validate(self) -> None:
        """
        Validate the full parameter set.

        Checks run in a fixed order and the first failure is raised:
        enable_erc20, native list, dynamic list, permissionless_registration,
        then uniqueness across dynamic and native addresses.
        """
        validate_bool(self.enable_erc20)

        native_addrs = validate_precompiles(self.native_precompiles)
        dynamic_addrs = validate_precompiles(self.dynamic_precompiles)

        validate_bool(self.permissionless_registration)

        validate_precompiles_uniqueness(dynamic_addrs + native_addrs)

    def is_native_precompile(self, addr: Address) -> bool:
        """Check if the address is within the native precompiles."""
        return _is_addr_included(addr, self.native_precompiles)

    def is_dynamic_precompile(self, addr: Address) -> bool:
        """Check if the address is within the dynamic precompiles."""
        return _is_addr_included(addr, self.dynamic_precompiles)

    def param_set_pairs(self) -> List[ParamSetPair]:
        return [
            ParamSetPair(key, getattr(self, attr), validator)
            for key, (attr, _, validator) in _FIELDS.items()
        ]

    def get_param(self, key: bytes) -> ParamValue:
        attr, kind, _ = _field(key)
        return ParamValue(kind, getattr(self, attr))

    def with_param(self, key: bytes, param_value: ParamValue) -> 'Params':
        """
        Return a copy with one field replaced.

        Lists are stored in the order given, so an unsorted update still
        fails validate(). The copy is not validated.
        """
        attr, kind, _ = _field(key)
        _check_kind(key, kind, param_value)
        value = param_value.value
        if isinstance(value, list):
            value = tuple(value)
        return replace(self, **{attr: value})

    def to_dict(self) -> dict:
        """Convert to dict keyed by the parameter store keys."""
        data = {}
        for key, (attr, kind, _) in _FIELDS.items():
            value = getattr(self, attr)
            if kind is ParamKind.STRING_LIST and isinstance(value, tuple):
                value = list(value)
            data[key.decode()] = value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'Params':
        """
        Create Params from a dictionary produced by to_dict.

        Stored order is kept so an unsorted record still fails validate().
        """
        kwargs = {}
        for key, (attr, kind, _) in _FIELDS.items():
            value = data[key.decode()]
            if kind is ParamKind.STRING_LIST and isinstance(value, list):
                value = tuple(value)
            kwargs[attr] = value
        return cls(**kwargs)

    def to_bytes(self) -> bytes:
        """Canonical msgpack encoding."""
        return msgpack.packb(self.to_dict(), use_bin_type=True)

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Params':
        return cls.from_dict(msgpack.unpackb(data, raw=False))


def new_params(
    enable_erc20: bool,
    native_precompiles,
    dynamic_precompiles,
    permissionless_registration: bool,
) -> Params:
    """
    Create a Params object.

    Both precompile lists are sorted, in place when they are lists. No other
    checks are made, call validate() before accepting the result.
    """
    return Params(
        enable_erc20=enable_erc20,
        native_precompiles=_sorted_precompiles(native_precompiles),
        dynamic_precompiles=_sorted_precompiles(dynamic_precompiles),
        permissionless_registration=permissionless_registration,
    )


def default_params(config: ModuleConfig = DEFAULT_CONFIG) -> Params:
    """Baseline parameters: ERC-20 and permissionless registration enabled."""
    return Params(
        enable_erc20=True,
        native_precompiles=config.native_precompiles,
        dynamic_precompiles=config.dynamic_precompiles,
        permissionless_registration=True,
    )
