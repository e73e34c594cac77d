"""Card reveal state machine: Back -> Flipped, then progressive essay disclosure.

One RevealMachine per guest session. The machine never goes back to Back on
its own; only selecting a scenario (or resetting the session) starts over.
"""
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from app.schemas.reveal import RevealLineSchema, RevealOutSchema
from app.schemas.scenario import ScenarioSchema

logger = logging.getLogger(__name__)

STATE_BACK = "back"
STATE_FLIPPED = "flipped"

CUE_FLIP = "flip"
CUE_PAGE_TURN = "page_turn"

DEFAULT_LINE_HEIGHT = 30  # px
MIN_REVEAL_STEP = 5  # lines per continue action, at least

SESSION_MAX_AGE = 24 * 3600  # seconds a reading may sit idle
MAX_SESSIONS = 10_000


def split_lines(content: str) -> list[str]:
    return content.split("\n")


def count_nonempty(lines: list[str]) -> int:
    return sum(1 for line in lines if line.strip())


def reveal_step(viewport_height: int, line_height: int = DEFAULT_LINE_HEIGHT, min_step: int = MIN_REVEAL_STEP) -> int:
    """Lines revealed per continue action: about one viewport, never fewer than min_step."""
    if line_height <= 0:
        return min_step
    return max(viewport_height // line_height, min_step)


@dataclass
class RevealState:
    scenario_id: str
    flipped: bool = False
    image_ready: bool = False
    revealed_line_count: int = 0


class RevealMachine:
    """Controller for one scenario viewing.

    Each action records the audio cue it produced (``last_cue``) and, for a
    reading step, the raw line index to scroll to (``last_scroll_to``); both
    are cleared at the start of the next action and carried in the snapshot.
    """

    def __init__(
        self,
        scenario: ScenarioSchema,
        line_height: int = DEFAULT_LINE_HEIGHT,
        min_step: int = MIN_REVEAL_STEP,
        on_cue: Callable[[str], None] | None = None,
    ):
        self.line_height = line_height
        self.min_step = min_step
        self.on_cue = on_cue
        self.select(scenario)

    def select(self, scenario: ScenarioSchema) -> None:
        """Start over on a (possibly different) scenario in the Back state."""
        self._begin()
        self.scenario = scenario
        self._lines = split_lines(scenario.emotional_content.content)
        self.total_line_count = count_nonempty(self._lines)
        self.state = RevealState(scenario_id=scenario.id)

    @property
    def flipped(self) -> bool:
        return self.state.flipped

    @property
    def revealed_line_count(self) -> int:
        return self.state.revealed_line_count

    @property
    def is_complete(self) -> bool:
        return self.state.revealed_line_count >= self.total_line_count

    def mark_image_ready(self) -> None:
        """Card image loaded (or failed to load); either way the card can be flipped."""
        self._begin()
        self.state.image_ready = True

    def flip(self) -> bool:
        self._begin()
        if self.state.flipped:
            return True
        if not self.state.image_ready:
            return False
        self.state.flipped = True
        self._play(CUE_FLIP)
        return True

    def continue_reading(self, viewport_height: int) -> int:
        """Reveal the next page of lines; no-op before the flip or once everything is shown."""
        self._begin()
        if not self.state.flipped or self.is_complete:
            return self.state.revealed_line_count
        before = self.state.revealed_line_count
        step = reveal_step(viewport_height, self.line_height, self.min_step)
        self.state.revealed_line_count = min(before + step, self.total_line_count)
        self.last_scroll_to = self.scroll_anchor(before)
        self._play(CUE_PAGE_TURN)
        return self.state.revealed_line_count

    def lines(self) -> list[RevealLineSchema]:
        """All lines, always present; non-empty lines past the revealed count are masked."""
        out = []
        nonempty_index = 0
        for i, text in enumerate(self._lines):
            if text.strip():
                visible = nonempty_index < self.state.revealed_line_count
                nonempty_index += 1
            else:
                visible = True
            out.append(RevealLineSchema(index=i, text=text, visible=visible))
        return out

    def scroll_anchor(self, previous_count: int) -> int | None:
        """Raw line index of the first non-empty line revealed after previous_count."""
        nonempty_index = 0
        for i, text in enumerate(self._lines):
            if not text.strip():
                continue
            if nonempty_index == previous_count:
                return i
            nonempty_index += 1
        return None

    def snapshot(self, with_cue: bool = True) -> RevealOutSchema:
        """Current state; with_cue=False for plain reads that must not replay a cue."""
        return RevealOutSchema(
            scenario_id=self.state.scenario_id,
            state=STATE_FLIPPED if self.state.flipped else STATE_BACK,
            flipped=self.state.flipped,
            image_ready=self.state.image_ready,
            revealed_line_count=self.state.revealed_line_count,
            total_line_count=self.total_line_count,
            complete=self.is_complete,
            lines=self.lines(),
            cue=self.last_cue if with_cue else None,
            scroll_to=self.last_scroll_to if with_cue else None,
        )

    def _begin(self) -> None:
        self.last_cue: str | None = None
        self.last_scroll_to: int | None = None

    def _play(self, cue: str) -> None:
        # the cue is recorded even if the listener fails; audio is fire-and-forget
        self.last_cue = cue
        if self.on_cue is None:
            return
        try:
            self.on_cue(cue)
        except Exception:
            logger.warning("Audio cue %r failed", cue, exc_info=True)


class RevealSessionStore:
    """In-memory map of guest session id -> RevealMachine.

    Bounded: a session idle for ``max_age`` seconds is dropped, and past
    ``max_sessions`` entries the least recently used one goes first.
    """

    def __init__(
        self,
        line_height: int = DEFAULT_LINE_HEIGHT,
        min_step: int = MIN_REVEAL_STEP,
        max_age: float = SESSION_MAX_AGE,
        max_sessions: int = MAX_SESSIONS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.line_height = line_height
        self.min_step = min_step
        self.max_age = max_age
        self.max_sessions = max_sessions
        self.clock = clock
        # least recently used first; values are (machine, last touched)
        self._machines: OrderedDict[str, tuple[RevealMachine, float]] = OrderedDict()

    def get(self, session_id: str) -> RevealMachine | None:
        self._expire()
        entry = self._machines.get(session_id)
        if entry is None:
            return None
        machine = entry[0]
        self._touch(session_id, machine)
        return machine

    def select(self, session_id: str, scenario: ScenarioSchema) -> RevealMachine:
        """A new selection always starts fresh, whatever the previous scenario's state."""
        self._expire()
        machine = RevealMachine(scenario, line_height=self.line_height, min_step=self.min_step)
        self._touch(session_id, machine)
        while len(self._machines) > self.max_sessions:
            evicted, _ = self._machines.popitem(last=False)
            logger.debug("Session %s evicted, store full", evicted)
        logger.debug("Session %s selected scenario %s", session_id, scenario.id)
        return machine

    def reset(self, session_id: str) -> None:
        self._machines.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._machines)

    def _touch(self, session_id: str, machine: RevealMachine) -> None:
        self._machines[session_id] = (machine, self.clock())
        self._machines.move_to_end(session_id)

    def _expire(self) -> None:
        now = self.clock()
        while self._machines:
            session_id, (_, touched) = next(iter(self._machines.items()))
            if now - touched < self.max_age:
                break
            del self._machines[session_id]
            logger.debug("Session %s expired", session_id)
