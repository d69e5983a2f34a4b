"""
Paramiko Key Store

Architectural Intent:
- Implements KeyStorePort on the local filesystem
- Generates an RSA 4096 keypair once, when absent; afterwards only reads it
- Public key lives next to the private key as <path>.pub (OpenSSH format)

Security:
- Private key written with mode 0600, key directory created with mode 0700
"""

import asyncio
import logging
import os
from pathlib import Path

import paramiko

from stratus.domain.errors import PreflightError
from stratus.domain.ports.key_store_port import KeyStorePort
from stratus.domain.value_objects.identity import Identity

logger = logging.getLogger(__name__)

KEY_BITS = 4096


class ParamikoKeyStore(KeyStorePort):
    def __init__(self, comment: str = "stratus") -> None:
        self.comment = comment

    def _public_line(self, key: paramiko.PKey) -> str:
        return f"{key.get_name()} {key.get_base64()} {self.comment}"

    def _generate(self, private_key_path: Path) -> str:
        private_key_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        key = paramiko.RSAKey.generate(KEY_BITS)
        key.write_private_key_file(str(private_key_path))
        os.chmod(private_key_path, 0o600)
        public = self._public_line(key)
        Path(f"{private_key_path}.pub").write_text(public + "\n")
        return public

    def _load(self, private_key_path: Path) -> str:
        public_path = Path(f"{private_key_path}.pub")
        if public_path.exists():
            return public_path.read_text().strip()
        key = paramiko.RSAKey.from_private_key_file(str(private_key_path))
        public = self._public_line(key)
        public_path.write_text(public + "\n")
        return public

    async def ensure_keypair(self, private_key_path: Path) -> tuple[Identity, bool]:
        private_key_path = Path(private_key_path).expanduser()
        generated = not private_key_path.exists()
        loop = asyncio.get_event_loop()
        try:
            if generated:
                logger.info("Generating SSH key pair at %s", private_key_path)
                public = await loop.run_in_executor(None, self._generate, private_key_path)
            else:
                logger.info("Using existing SSH key: %s", private_key_path)
                public = await loop.run_in_executor(None, self._load, private_key_path)
        except (OSError, paramiko.SSHException) as e:
            raise PreflightError(f"SSH key at {private_key_path} is unusable: {e}") from e
        return Identity(private_key_path=private_key_path, public_key=public), generated
