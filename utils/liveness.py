"""
Liveness supervisor
Probes the Discord connection and the keep-alive server, and reconnects with bounded retries
"""
import asyncio
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Deque, Dict, Optional, Tuple

from discord.ext import tasks

from config import BotConfig
from logger import log
from utils.enums import ConnectionStatus, LivenessStatus
from utils.errors import ProbeFailure, ReconnectExhausted
from utils.gateway import Gateway
from utils.helpers import datetime_now


@dataclass
class LivenessState:
    status: LivenessStatus = LivenessStatus.CONNECTED
    consecutive_failures: int = 0
    last_probe_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None


class LivenessSupervisor:
    """
    Bounded-retry reconnect state machine

    CONNECTED -> DISCONNECTED when a probe fails, then straight to
    RECONNECTING. Each failed attempt counts towards max_retries; reaching
    it moves to EXHAUSTED, which is terminal until the process restarts.
    A successful gateway probe or reconnect goes back to CONNECTED and
    resets the failure count.
    """

    def __init__(
        self,
        gateway: Gateway,
        config: BotConfig,
        http_probe: Optional[Callable[[], Awaitable[None]]] = None,
        on_exhausted: Optional[Callable[[ReconnectExhausted], Awaitable[None]]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = datetime_now
    ):
        self.gateway = gateway
        self.config = config
        self.http_probe = http_probe
        self.on_exhausted = on_exhausted
        self._sleep = sleep
        self._clock = clock

        self.state = LivenessState()
        self.history: Deque[Tuple[datetime, LivenessStatus]] = deque(maxlen=50)
        self.ping_count = 0
        self._reconnect_task: Optional[asyncio.Task] = None

        self._gateway_loop = tasks.loop(seconds=config.probe_interval)(self._gateway_probe_tick)
        self._http_loop = tasks.loop(seconds=config.http_probe_interval)(self._http_probe_tick)

    # ============================================
    # State
    # ============================================

    @property
    def status(self) -> LivenessStatus:
        return self.state.status

    @property
    def degraded(self) -> bool:
        return self.state.status is LivenessStatus.EXHAUSTED

    @property
    def reconnect_in_flight(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    @property
    def reconnect_task(self) -> Optional[asyncio.Task]:
        return self._reconnect_task

    def snapshot(self) -> Dict[str, object]:
        """Plain representation of the state, for the health endpoint"""
        return {
            "status": self.state.status.value,
            "consecutive_failures": self.state.consecutive_failures,
            "max_retries": self.config.max_retries,
            "last_probe_at": self.state.last_probe_at.isoformat() if self.state.last_probe_at else None,
            "last_success_at": self.state.last_success_at.isoformat() if self.state.last_success_at else None,
            "pings": self.ping_count,
            "degraded": self.degraded,
        }

    def _set_status(self, status: LivenessStatus):
        if status is self.state.status:
            return
        log.info(f"Liveness: {self.state.status.value} -> {status.value}")
        self.state.status = status
        self.history.append((self._clock(), status))

    # ============================================
    # Timers
    # ============================================

    def start(self):
        """Start both probe loops"""
        if self.degraded:
            log.warning("Liveness supervisor is exhausted, not starting probes")
            return

        log.info("Starting keep-alive probes...")
        if not self._gateway_loop.is_running():
            self._gateway_loop.start()
        if self.http_probe is not None and not self._http_loop.is_running():
            self._http_loop.start()

    @property
    def is_running(self) -> bool:
        return self._gateway_loop.is_running() or self._http_loop.is_running()

    def stop_probes(self):
        self._gateway_loop.cancel()
        self._http_loop.cancel()

    def stop(self):
        """Stop the probes and any reconnect in progress"""
        self.stop_probes()
        self._cancel_reconnect()
        log.info("Keep-alive probes stopped")

    def _cancel_reconnect(self):
        task = self._reconnect_task
        if task is None or task is asyncio.current_task():
            return

        # Forget the task first: a cancelled task is only done once it runs again
        self._reconnect_task = None
        if not task.done():
            task.cancel()

    async def _gateway_probe_tick(self):
        try:
            await self.probe_gateway()
        except Exception as e:
            log.error(f"Error in gateway probe: {e}")

    async def _http_probe_tick(self):
        try:
            await self.probe_http()
        except Exception as e:
            log.error(f"Error in loopback probe: {e}")

    # ============================================
    # Probes
    # ============================================

    async def probe_gateway(self):
        """Check the live connection status reported by the gateway"""
        if self.degraded:
            log.debug("Gateway probe skipped, supervisor exhausted")
            return

        self.state.last_probe_at = self._clock()
        status = self.gateway.get_connection_status()

        if status is ConnectionStatus.READY:
            self.ping_count += 1
            log.info(f"Bot actif - Ping #{self.ping_count}")
            self.report_success()
        else:
            self.report_failure(ProbeFailure(f"Gateway status is {status.value}"))

    async def probe_http(self):
        """Request the keep-alive server through the loopback interface"""
        if self.degraded or self.http_probe is None:
            return

        self.state.last_probe_at = self._clock()
        try:
            await self.http_probe()
        except ProbeFailure as e:
            self.report_failure(e)
            return

        # A reachable web server says nothing about the Discord session
        log.debug("Loopback probe answered")

    # ============================================
    # State machine
    # ============================================

    def report_success(self):
        """Record a successful gateway observation"""
        if self.degraded:
            return

        self.state.last_success_at = self._clock()
        # A retry left sleeping in its backoff would block the next failure
        self._cancel_reconnect()
        if self.state.status is not LivenessStatus.CONNECTED:
            log.success(f"Connection restored after {self.state.consecutive_failures} failed attempt(s)")
            self._set_status(LivenessStatus.CONNECTED)
        self.state.consecutive_failures = 0

    def report_failure(self, error: Exception) -> Optional[asyncio.Task]:
        """
        Record a failed probe and start reconnecting

        Returns:
            The reconnect task, or None when an attempt is already running
            or the supervisor is exhausted
        """
        if self.degraded:
            log.debug(f"Ignoring probe failure, supervisor exhausted: {error}")
            return None

        log.warning(f"Liveness probe failed: {error}")

        if self.reconnect_in_flight:
            log.debug("Reconnect already in progress, ignoring probe failure")
            return None

        if self.state.status is LivenessStatus.CONNECTED:
            self._set_status(LivenessStatus.DISCONNECTED)
        self._set_status(LivenessStatus.RECONNECTING)

        self._reconnect_task = asyncio.create_task(self._reconnect_loop())
        return self._reconnect_task

    async def _reconnect_loop(self):
        max_retries = self.config.max_retries

        while self.state.status is LivenessStatus.RECONNECTING:
            attempt = self.state.consecutive_failures + 1
            log.info(f"Reconnect attempt {attempt}/{max_retries}")

            try:
                succeeded = await self.gateway.reconnect()
            except Exception as e:
                log.error(f"Reconnect attempt {attempt} raised: {e}")
                succeeded = False

            # A gateway probe may have seen the session come back meanwhile
            if self.state.status is not LivenessStatus.RECONNECTING:
                return

            if succeeded:
                self.state.consecutive_failures = 0
                self.state.last_success_at = self._clock()
                self._set_status(LivenessStatus.CONNECTED)
                log.success("Reconnected")
                return

            self.state.consecutive_failures += 1
            if self.state.consecutive_failures >= max_retries:
                await self._exhaust()
                return

            log.warning(f"Reconnect failed, retrying in {self.config.retry_delay:.0f}s")
            await self._sleep(self.config.retry_delay)

    async def _exhaust(self):
        self._set_status(LivenessStatus.EXHAUSTED)
        error = ReconnectExhausted(self.state.consecutive_failures)
        log.error(f"{error}. Running degraded until the process is restarted.")
        self.stop_probes()

        if self.on_exhausted is not None:
            try:
                await self.on_exhausted(error)
            except Exception as e:
                log.error(f"Error in exhaustion handler: {e}")
