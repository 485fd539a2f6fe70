from .address import Address, hex_to_address, validate_address
from .errors import (
    ValidationError,
    TypeMismatchError,
    InvalidAddressError,
    UnsortedPrecompilesError,
    DuplicatePrecompileError,
    UnknownParamKeyError,
)
from .params import Params, ParamValue, ParamKind, new_params, default_params
