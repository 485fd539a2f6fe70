"""
Parameter store adapter for the ERC-20 module.

Each field lives under its own key so it can be updated independently.
A candidate configuration is only written after it validates, and all
fields go through one write batch, so a rejected or failed update leaves
the stored parameters untouched.
"""
import logging
from typing import Optional

import msgpack

from .errors import ValidationError
from .params import (
    PARAM_STORE_KEYS,
    Params,
    ParamValue,
    default_params,
    validate_param,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

KEY_PREFIX = b"erc20/params/"


class ParamsStore:
    def __init__(self, db):
        """
        Args:
            db: Key/value backend exposing get(key) and a write_batch()
                context manager whose batch has put(key, value).
        """
        self.db = db

    def _key(self, key: bytes) -> bytes:
        return KEY_PREFIX + key

    def has_params(self) -> bool:
        return all(self.db.get(self._key(k)) is not None for k in PARAM_STORE_KEYS)

    def get_params(self) -> Optional[Params]:
        """Returns the stored params, or None if the store was never initialized."""
        if not self.has_params():
            return None
        data = {
            key.decode(): msgpack.unpackb(self.db.get(self._key(key)), raw=False)
            for key in PARAM_STORE_KEYS
        }
        return Params.from_dict(data)

    def get_param(self, key: bytes) -> ParamValue:
        params = self.get_params()
        if params is None:
            raise KeyError(f"Params not initialized, cannot read {key.decode()}")
        return params.get_param(key)

    def set_params(self, params: Params):
        """Validate and store a full parameter set."""
        try:
            params.validate()
        except ValidationError as e:
            logger.warning(f"Rejected ERC-20 params update: {e}")
            raise

        try:
            with self.db.write_batch() as batch:
                for key, value in params.to_dict().items():
                    batch.put(self._key(key.encode()), msgpack.packb(value, use_bin_type=True))
        except Exception as e:
            logger.error(f"Failed to write ERC-20 params: {e}")
            raise
        logger.info(
            f"ERC-20 params updated: enable_erc20={params.enable_erc20}, "
            f"native={len(params.native_precompiles)}, "
            f"dynamic={len(params.dynamic_precompiles)}, "
            f"permissionless_registration={params.permissionless_registration}"
        )

    def set_param(self, key: bytes, param_value: ParamValue):
        """Validate and store a single field, then the full candidate set."""
        current = self.get_params()
        if current is None:
            raise KeyError(f"Params not initialized, cannot update {key.decode()}")

        try:
            validate_param(key, param_value)
        except ValidationError as e:
            logger.warning(f"Rejected ERC-20 param {key.decode()}: {e}")
            raise

        self.set_params(current.with_param(key, param_value))

    def init_genesis(self, params: Optional[Params] = None):
        """Store the genesis params, falling back to the defaults."""
        self.set_params(params if params is not None else default_params())
