"""
Timed poll engine
Seeds reactions on an anchor message, then samples them on a timer and emits results
"""
import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

import discord

import config
from logger import log
from utils.enums import PollKind, TallyMode
from utils.errors import (
    AnchorUnavailable,
    InvalidInputError,
    InvalidOptionCount,
    PollNotFoundError,
    TallyAlreadyScheduled,
)
from utils.gateway import Destination, Gateway, MessageHandle
from utils.helpers import datetime_now


@dataclass(frozen=True)
class PollOption:
    label: str
    symbol: str


@dataclass
class Poll:
    """An open vote or survey, identified by its anchor message"""

    anchor: MessageHandle
    options: Tuple[PollOption, ...]
    opened_at: datetime
    kind: PollKind = PollKind.SURVEY
    closes_at: Optional[datetime] = None
    tally_mode: TallyMode = TallyMode.SNAPSHOT_ONCE
    title: Optional[str] = None

    @property
    def id(self) -> int:
        return self.anchor.message_id

    @property
    def symbols(self) -> List[str]:
        return [option.symbol for option in self.options]


@dataclass(frozen=True)
class PollResult:
    """Reaction counts per option label, in option order, bot reactions excluded"""

    poll_id: int
    counts: Dict[str, int]
    final: bool
    taken_at: datetime = field(default_factory=datetime_now)

    @property
    def total(self) -> int:
        return sum(self.counts.values())


ResultCallback = Callable[[Poll, PollResult], Awaitable[None]]


def tally_schedule(interval: float, final_duration: float) -> Iterator[Tuple[float, bool]]:
    """
    Delays between successive samples of a periodic tally

    Yields (delay, is_final) pairs. Intermediate samples fall on every
    multiple of interval strictly before final_duration, the final one on
    final_duration itself.
    """
    elapsed = 0.0
    while elapsed + interval < final_duration:
        elapsed += interval
        yield interval, False
    yield final_duration - elapsed, True


class PollEngine:
    """Owns every open poll and the single timer chain of each"""

    def __init__(
        self,
        gateway: Gateway,
        on_result: ResultCallback,
        *,
        keycap_symbols: Sequence[str] = config.KEYCAP_SYMBOLS,
        vote_symbols: Sequence[str] = config.VOTE_SYMBOLS,
        vote_labels: Sequence[str] = config.VOTE_LABELS,
        max_options: int = config.MAX_POLL_OPTIONS,
        max_untimed_polls: int = config.MAX_UNTIMED_POLLS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = datetime_now
    ):
        self.gateway = gateway
        self.on_result = on_result
        self.keycap_symbols = tuple(keycap_symbols)
        self.vote_symbols = tuple(vote_symbols)
        self.vote_labels = tuple(vote_labels)
        self.max_options = max_options
        self.max_untimed_polls = max_untimed_polls
        self._sleep = sleep
        self._clock = clock

        self._polls: Dict[int, Poll] = {}
        self._timers: Dict[int, asyncio.Task] = {}
        self.released_timers = 0

    # ============================================
    # Introspection
    # ============================================

    @property
    def open_polls(self) -> List[Poll]:
        return list(self._polls.values())

    @property
    def active_timers(self) -> int:
        return sum(1 for task in self._timers.values() if not task.done())

    def get_poll(self, poll_id: int) -> Optional[Poll]:
        return self._polls.get(poll_id)

    def symbols_for(self, kind: PollKind) -> Tuple[str, ...]:
        if kind is PollKind.VOTE:
            return self.vote_symbols
        return self.keycap_symbols

    # ============================================
    # Opening and closing
    # ============================================

    def validate_labels(self, labels: Sequence[str], kind: PollKind = PollKind.SURVEY) -> List[str]:
        """
        Check option labels before anything is posted

        Raises:
            InvalidOptionCount: no labels, or more than there are symbols for
            InvalidInputError: two options share a label
        """
        labels = list(labels)
        limit = min(self.max_options, len(self.symbols_for(kind)))
        if not labels or len(labels) > limit:
            raise InvalidOptionCount(len(labels), limit)

        if len(set(labels)) != len(labels):
            raise InvalidInputError("Each option must be different.")

        return labels

    async def open_poll(
        self,
        destination: Destination,
        labels: Sequence[str],
        *,
        embed: Optional[discord.Embed] = None,
        content: Optional[str] = None,
        duration: Optional[timedelta] = None,
        kind: PollKind = PollKind.SURVEY,
        title: Optional[str] = None
    ) -> Poll:
        """
        Post an anchor message and seed one reaction per option, in order

        Args:
            destination: Where to post (interaction, channel or channel id)
            labels: Option labels, 1 to 10 of them
            embed: Embed shown on the anchor message
            content: Text shown on the anchor message
            duration: When given, a single tally is scheduled after it
            kind: VOTE uses the affirm/deny/abstain symbols, SURVEY the keycaps
            title: Question or proposition, kept for the result announcement

        Returns:
            The open poll, used as the handle for every other operation

        A poll without a tally stays open until closed; beyond
        max_untimed_polls of them the oldest are closed.
        """
        labels = self.validate_labels(labels, kind)
        symbols = self.symbols_for(kind)

        anchor = await self.gateway.post_message(destination, content=content, embed=embed)
        options = tuple(PollOption(label=label, symbol=symbol) for label, symbol in zip(labels, symbols))
        for option in options:
            await self.gateway.add_reaction(anchor, option.symbol)

        poll = Poll(
            anchor=anchor,
            options=options,
            opened_at=self._clock(),
            kind=kind,
            title=title
        )
        self._polls[poll.id] = poll
        log.info(f"Opened {kind.value} {poll.id} with {len(options)} options")

        if duration is not None:
            self.schedule_tally(poll, duration)
        else:
            self._forget_oldest_untimed()

        return poll

    async def open_vote(
        self,
        destination: Destination,
        *,
        embed: Optional[discord.Embed] = None,
        duration: Optional[timedelta] = None,
        title: Optional[str] = None
    ) -> Poll:
        """Open a binary vote (for, against, abstain)"""
        return await self.open_poll(
            destination,
            self.vote_labels,
            embed=embed,
            duration=duration,
            kind=PollKind.VOTE,
            title=title
        )

    def close_poll(self, poll: Poll) -> bool:
        """Drop a poll and cancel its pending tally; returns False if it was not open"""
        if self._polls.pop(poll.id, None) is None:
            return False

        self._release_timer(poll)
        log.info(f"Closed poll {poll.id}")
        return True

    def _forget_oldest_untimed(self):
        untimed = [poll for poll in self._polls.values() if poll.id not in self._timers]
        excess = len(untimed) - self.max_untimed_polls
        for poll in untimed[:max(excess, 0)]:
            log.info(f"More than {self.max_untimed_polls} polls without a tally, forgetting poll {poll.id}")
            self.close_poll(poll)

    def shutdown(self):
        """Close every open poll"""
        for poll in self.open_polls:
            self.close_poll(poll)

    # ============================================
    # Tallying
    # ============================================

    async def sample(self, poll: Poll, final: bool = False) -> PollResult:
        """
        Read the current counts of a poll

        Raises:
            AnchorUnavailable: the anchor message is gone
        """
        raw = await self.gateway.get_reaction_counts(poll.anchor)
        # The bot's own seeding reaction is part of every raw count
        counts = {option.label: max(raw.get(option.symbol, 0) - 1, 0) for option in poll.options}
        return PollResult(poll_id=poll.id, counts=counts, final=final, taken_at=self._clock())

    def schedule_tally(self, poll: Poll, duration: timedelta) -> asyncio.Task:
        """Tally once after duration, then drop the poll"""
        self._check_schedulable(poll)
        poll.tally_mode = TallyMode.SNAPSHOT_ONCE
        poll.closes_at = self._clock() + duration
        return self._start_timer(poll, [(duration.total_seconds(), True)])

    def schedule_periodic_tally(self, poll: Poll, interval: timedelta, final_duration: timedelta) -> asyncio.Task:
        """Tally every interval until final_duration has elapsed, then once more and drop the poll"""
        if interval.total_seconds() <= 0:
            raise InvalidInputError("The tally interval must be greater than zero.")

        self._check_schedulable(poll)
        poll.tally_mode = TallyMode.PERIODIC_THEN_FINAL
        poll.closes_at = self._clock() + final_duration
        return self._start_timer(
            poll,
            tally_schedule(interval.total_seconds(), final_duration.total_seconds())
        )

    def _check_schedulable(self, poll: Poll):
        if poll.id not in self._polls:
            raise PollNotFoundError(f"Poll {poll.id} is not open")
        if poll.id in self._timers:
            raise TallyAlreadyScheduled(f"Poll {poll.id} already has a tally scheduled")

    def _start_timer(self, poll: Poll, schedule) -> asyncio.Task:
        task = asyncio.create_task(self._run_timer(poll, schedule))
        self._timers[poll.id] = task
        return task

    async def _run_timer(self, poll: Poll, schedule):
        try:
            for delay, final in schedule:
                await self._sleep(delay)
                await self._emit(poll, final)
        finally:
            self._polls.pop(poll.id, None)
            self._release_timer(poll)

    def _release_timer(self, poll: Poll) -> bool:
        task = self._timers.pop(poll.id, None)
        if task is None:
            return False

        self.released_timers += 1
        if task is not asyncio.current_task() and not task.done():
            task.cancel()
        return True

    async def _emit(self, poll: Poll, final: bool):
        try:
            result = await self.sample(poll, final=final)
        except AnchorUnavailable as e:
            log.warning(f"Skipping tally of poll {poll.id}: {e}")
            return
        except Exception as e:
            log.error(f"Error sampling poll {poll.id}: {e}")
            return

        try:
            await self.on_result(poll, result)
        except Exception as e:
            log.error(f"Error announcing result of poll {poll.id}: {e}")
