from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Identity:
    """
    Value Object for the local SSH keypair used to reach the VM.
    """
    private_key_path: Path
    public_key: str

    def __post_init__(self):
        if not self.public_key.strip():
            raise ValueError("Public key cannot be empty")

    @property
    def public_key_path(self) -> Path:
        return self.private_key_path.with_name(self.private_key_path.name + ".pub")
