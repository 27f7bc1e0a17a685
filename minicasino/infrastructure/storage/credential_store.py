# minicasino/infrastructure/storage/credential_store.py
import json
import logging
import os
from typing import Dict, Any, Optional

import aiofiles


class CredentialStore:
    """
    Durable client-side key-value slot backed by a small JSON file.

    Only the session credential lives here in practice; the file is
    rewritten whole on every change.
    """
    def __init__(self, path: str):
        """
        Args:
            path: Location of the JSON file (``~`` is expanded)
        """
        self.logger = logging.getLogger("infrastructure.storage")
        self.path = os.path.expanduser(path)

    async def get(self, key: str) -> Optional[str]:
        data = await self._read()
        value = data.get(key)
        return value if isinstance(value, str) and value else None

    async def set(self, key: str, value: str):
        data = await self._read()
        data[key] = value
        await self._write(data)
        self.logger.debug(f"Stored '{key}' in {self.path}")

    async def remove(self, key: str) -> bool:
        """
        Delete a key.

        Returns:
            True if the key was present
        """
        data = await self._read()
        if key not in data:
            return False
        del data[key]
        await self._write(data)
        self.logger.debug(f"Removed '{key}' from {self.path}")
        return True

    async def _read(self) -> Dict[str, Any]:
        if not os.path.isfile(self.path):
            return {}
        try:
            async with aiofiles.open(self.path, 'r', encoding='utf-8') as f:
                content = await f.read()
        except OSError as e:
            self.logger.warning(f"Could not read {self.path}: {e}")
            return {}
        if not content.strip():
            return {}
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            self.logger.warning(f"Discarding unreadable state file {self.path}")
            return {}
        return data if isinstance(data, dict) else {}

    async def _write(self, data: Dict[str, Any]):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        async with aiofiles.open(tmp_path, 'w', encoding='utf-8') as f:
            await f.write(json.dumps(data))
        os.replace(tmp_path, self.path)
