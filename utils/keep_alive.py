"""
Keep-alive web server
Free hosting tiers put the process to sleep unless something answers HTTP
"""
import asyncio
from typing import Callable, Dict, Optional

import aiohttp
from aiohttp import ClientTimeout, web

from logger import log
from utils.errors import ProbeFailure, ProbeTimeout

ROOT_TEXT = "Le bot est en ligne!"


class KeepAliveServer:
    """Minimal aiohttp app, independent from the Discord session"""

    def __init__(
        self,
        port: int,
        host: str = "0.0.0.0",
        status_provider: Optional[Callable[[], Dict[str, object]]] = None
    ):
        self.port = port
        self.host = host
        self.status_provider = status_provider
        self.app = web.Application()
        self.app.router.add_get("/", self.handle_root)
        self.app.router.add_get("/health", self.handle_health)
        self._runner: Optional[web.AppRunner] = None

    async def handle_root(self, request: web.Request) -> web.Response:
        return web.Response(text=ROOT_TEXT)

    async def handle_health(self, request: web.Request) -> web.Response:
        status = self.status_provider() if self.status_provider else {"status": "online"}
        return web.json_response(status)

    async def start(self):
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        log.success(f"Keep-alive server listening on port {self.port}")

    async def stop(self):
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            log.info("Keep-alive server stopped")


class LoopbackProbe:
    """
    Requests the keep-alive server and raises when it does not answer 200

    Raises:
        ProbeTimeout: no answer within timeout seconds
        ProbeFailure: connection error or non-200 status
    """

    def __init__(self, url: str, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout

    @classmethod
    def for_port(cls, port: int, timeout: float = 10.0) -> "LoopbackProbe":
        return cls(f"http://127.0.0.1:{port}/", timeout)

    async def __call__(self):
        try:
            async with aiohttp.ClientSession(timeout=ClientTimeout(total=self.timeout)) as session:
                async with session.get(self.url) as response:
                    await response.read()
                    if response.status != 200:
                        raise ProbeFailure(f"Loopback probe answered HTTP {response.status}")
        except asyncio.TimeoutError as e:
            raise ProbeTimeout(f"No answer from {self.url} within {self.timeout:.0f}s") from e
        except aiohttp.ClientError as e:
            raise ProbeFailure(f"Loopback probe failed: {e}") from e
