"""
Process-wide configuration for the ERC-20 module defaults.
"""
import json
import os
from dataclasses import dataclass, asdict, field


@dataclass(frozen=True)
class ModuleConfig:
    """
    Default precompile lists used by default_params().

    Loaded once at process start and never mutated afterwards. Chains that
    expose their native denomination as an ERC-20 usually list the ERC-7528
    address here: 0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE
    """
    native_precompiles: tuple = field(default_factory=tuple)
    dynamic_precompiles: tuple = field(default_factory=tuple)

    def __post_init__(self):
        # Lists from JSON or callers are frozen into tuples
        for name in ('native_precompiles', 'dynamic_precompiles'):
            value = getattr(self, name)
            if not isinstance(value, (list, tuple)):
                raise ValueError(
                    f"{name} must be a list of addresses, got {type(value).__name__}"
                )
            object.__setattr__(self, name, tuple(value))

    @classmethod
    def default(cls) -> 'ModuleConfig':
        """Create default configuration."""
        return cls()

    @classmethod
    def from_file(cls, path: str) -> 'ModuleConfig':
        """Load configuration from JSON file."""
        with open(path, 'r') as f:
            data = json.load(f)

        return cls(
            native_precompiles=data.get('native_precompiles', []),
            dynamic_precompiles=data.get('dynamic_precompiles', []),
        )

    def to_file(self, path: str):
        """Save configuration to JSON file."""
        os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        data = asdict(self)
        return {k: list(v) for k, v in data.items()}


DEFAULT_CONFIG = ModuleConfig.default()
