# erc20_params/test_store.py
from contextlib import contextmanager

import msgpack
import pytest

from erc20_params.errors import (
    DuplicatePrecompileError,
    InvalidAddressError,
    TypeMismatchError,
    UnknownParamKeyError,
    UnsortedPrecompilesError,
)
from erc20_params.params import (
    PARAM_STORE_KEY_DYNAMIC_PRECOMPILES,
    PARAM_STORE_KEY_ENABLE_ERC20,
    PARAM_STORE_KEY_NATIVE_PRECOMPILES,
    Params,
    ParamValue,
    default_params,
    new_params,
)
from erc20_params.store import KEY_PREFIX, ParamsStore

ADDR_1 = "0x0000000000000000000000000000000000000001"
ADDR_2 = "0x0000000000000000000000000000000000000002"
ADDR_3 = "0x0000000000000000000000000000000000000003"


class MemoryBatch:
    def __init__(self, db):
        self.db = db
        self.pending = {}

    def put(self, key: bytes, value: bytes):
        self.pending[key] = value


class MemoryDB:
    """Dict backed stand-in for the chain DB."""

    def __init__(self):
        self.data = {}

    def get(self, key: bytes):
        return self.data.get(key)

    def put(self, key: bytes, value: bytes):
        self.data[key] = value

    @contextmanager
    def write_batch(self):
        batch = MemoryBatch(self)
        yield batch
        self.data.update(batch.pending)


class FailingBatch(MemoryBatch):
    def __init__(self, db, fail_key: bytes):
        super().__init__(db)
        self.fail_key = fail_key

    def put(self, key: bytes, value: bytes):
        if key == self.fail_key:
            raise IOError(f"write failed for {key!r}")
        super().put(key, value)


class FailingDB(MemoryDB):
    """Fails the batch put for one key once armed."""

    def __init__(self):
        super().__init__()
        self.fail_key = None

    @contextmanager
    def write_batch(self):
        if self.fail_key is None:
            with super().write_batch() as batch:
                yield batch
            return
        batch = FailingBatch(self, self.fail_key)
        yield batch
        self.data.update(batch.pending)


@pytest.fixture
def db():
    return MemoryDB()


@pytest.fixture
def store(db):
    store = ParamsStore(db)
    store.init_genesis(new_params(True, [ADDR_1], [ADDR_2], True))
    return store


def test_uninitialized_store(db):
    store = ParamsStore(db)
    assert store.get_params() is None
    assert not store.has_params()
    with pytest.raises(KeyError):
        store.get_param(PARAM_STORE_KEY_ENABLE_ERC20)
    with pytest.raises(KeyError):
        store.set_param(PARAM_STORE_KEY_ENABLE_ERC20, ParamValue.of_bool(False))


def test_init_genesis_defaults(db):
    store = ParamsStore(db)
    store.init_genesis()
    assert store.get_params() == default_params()


def test_fields_stored_per_key(store, db):
    assert db.get(KEY_PREFIX + b"EnableErc20") == msgpack.packb(True)
    assert msgpack.unpackb(db.get(KEY_PREFIX + b"NativePrecompiles"), raw=False) == [ADDR_1]


def test_set_params_roundtrip(store):
    params = new_params(False, [ADDR_3, ADDR_1], [], False)
    store.set_params(params)
    assert store.get_params() == params
    assert store.get_params().native_precompiles == (ADDR_1, ADDR_3)


def test_rejected_params_keep_previous(store):
    before = store.get_params()

    with pytest.raises(InvalidAddressError):
        store.set_params(new_params(True, ["not-an-address"], [], True))
    with pytest.raises(UnsortedPrecompilesError):
        store.set_params(Params(True, (ADDR_2, ADDR_1), (), True))
    with pytest.raises(DuplicatePrecompileError):
        store.set_params(new_params(True, [ADDR_1], [ADDR_1.upper().replace("0X", "0x")], True))

    assert store.get_params() == before


def test_set_param_bool(store):
    store.set_param(PARAM_STORE_KEY_ENABLE_ERC20, ParamValue.of_bool(False))
    params = store.get_params()
    assert params.enable_erc20 is False
    assert params.native_precompiles == (ADDR_1,)


def test_set_param_list(store):
    store.set_param(
        PARAM_STORE_KEY_NATIVE_PRECOMPILES,
        ParamValue.of_string_list([ADDR_1, ADDR_3]),
    )
    assert store.get_param(PARAM_STORE_KEY_NATIVE_PRECOMPILES) == \
        ParamValue.of_string_list((ADDR_1, ADDR_3))


def test_set_param_unsorted_rejected(store):
    with pytest.raises(UnsortedPrecompilesError):
        store.set_param(
            PARAM_STORE_KEY_NATIVE_PRECOMPILES,
            ParamValue.of_string_list([ADDR_3, ADDR_1]),
        )
    assert store.get_params().native_precompiles == (ADDR_1,)


def test_set_param_wrong_kind(store):
    before = store.get_params()
    with pytest.raises(TypeMismatchError):
        store.set_param(PARAM_STORE_KEY_ENABLE_ERC20, ParamValue.of_string_list([ADDR_3]))
    assert store.get_params() == before


def test_set_param_unknown_key(store):
    with pytest.raises(UnknownParamKeyError):
        store.set_param(b"MaxTokenPairs", ParamValue.of_bool(True))


def test_set_param_duplicate_across_sets(store):
    # ADDR_2 is already a dynamic precompile
    before = store.get_params()
    with pytest.raises(DuplicatePrecompileError):
        store.set_param(
            PARAM_STORE_KEY_NATIVE_PRECOMPILES,
            ParamValue.of_string_list([ADDR_1, ADDR_2]),
        )
    assert store.get_params() == before


def test_set_param_moves_precompile(store):
    store.set_param(PARAM_STORE_KEY_DYNAMIC_PRECOMPILES, ParamValue.of_string_list([]))
    store.set_param(
        PARAM_STORE_KEY_NATIVE_PRECOMPILES,
        ParamValue.of_string_list([ADDR_1, ADDR_2]),
    )
    params = store.get_params()
    assert params.dynamic_precompiles == ()
    assert params.native_precompiles == (ADDR_1, ADDR_2)


def test_rejection_is_logged(store, caplog):
    with caplog.at_level("WARNING", logger="erc20_params.store"):
        with pytest.raises(InvalidAddressError):
            store.set_params(new_params(True, ["not-an-address"], [], True))
    assert "not-an-address" in caplog.text


def test_failed_write_keeps_previous():
    db = FailingDB()
    store = ParamsStore(db)
    store.init_genesis(new_params(True, [ADDR_1], [ADDR_2], True))
    before = store.get_params()

    db.fail_key = KEY_PREFIX + PARAM_STORE_KEY_NATIVE_PRECOMPILES
    with pytest.raises(IOError):
        store.set_params(new_params(True, [ADDR_2], [ADDR_1], True))

    after = store.get_params()
    assert after == before
    after.validate()
