"""
Validation errors raised while checking ERC-20 module parameters.
"""


class ValidationError(Exception):
    """Base class for rejected parameter configurations."""


class TypeMismatchError(ValidationError):
    """A parameter field arrived with the wrong type."""


class InvalidAddressError(ValidationError):
    def __init__(self, address, message: str = None):
        self.address = address
        super().__init__(message or f"invalid precompile {address}")


class UnsortedPrecompilesError(ValidationError):
    def __init__(self, precompiles):
        self.precompiles = list(precompiles)
        super().__init__(
            f"precompiles need to be sorted: [{' '.join(self.precompiles)}]"
        )


class DuplicatePrecompileError(ValidationError):
    def __init__(self, address):
        self.address = address
        super().__init__(f"duplicate precompile {address}")


class UnknownParamKeyError(ValidationError):
    def __init__(self, key: bytes):
        self.key = key
        super().__init__(f"unknown parameter key: {key!r}")
