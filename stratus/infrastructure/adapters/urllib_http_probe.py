"""
Urllib HTTP Probe

Architectural Intent:
- Implements HttpProbePort for the post-deployment website check
- Uses stdlib urllib for the HTTP layer (no external dependencies)
- Error statuses are answers, not failures: a 404 returns 404
- Connection-level failures return 0
"""

import asyncio
import logging
import urllib.error
import urllib.request

logger = logging.getLogger(__name__)


class UrllibHttpProbe:
    """HTTP status probe over urllib."""

    def _status(self, url: str, timeout: int) -> int:
        request = urllib.request.Request(
            url, headers={"User-Agent": "stratus-probe"}
        )
        try:
            with urllib.request.urlopen(request, timeout=timeout) as response:
                return response.status
        except urllib.error.HTTPError as e:
            return e.code
        except (urllib.error.URLError, OSError) as e:
            logger.debug("GET %s failed: %s", url, e)
            return 0

    async def status(self, url: str, timeout: int = 10) -> int:
        code = await asyncio.get_event_loop().run_in_executor(
            None, self._status, url, timeout
        )
        logger.info("GET %s -> %s", url, code)
        return code
