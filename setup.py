# setup.py
from setuptools import setup, find_packages

setup(
    name="erc20_params",
    version="0.1.0",
    packages=find_packages(),
    install_requires=[
        "msgpack",                  # canonical params encoding
        "eth-utils",                # hex address checks, EIP-55 checksums
        "eth-hash[pycryptodome]",   # keccak backend for eth-utils
    ],
    extras_require={
        "test": ["pytest"],
    },
)
