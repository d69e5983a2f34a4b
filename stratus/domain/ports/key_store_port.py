"""
Key Store Port

Architectural Intent:
- Port interface for the local SSH identity material
- Keys are generated once when absent and only read afterwards
"""

from abc import ABC, abstractmethod
from pathlib import Path
from stratus.domain.value_objects.identity import Identity


class KeyStorePort(ABC):
    @abstractmethod
    async def ensure_keypair(self, private_key_path: Path) -> tuple[Identity, bool]:
        """
        Returns the identity at the path, generating it first if absent.
        The boolean is True when a new keypair was generated.
        """
        pass
