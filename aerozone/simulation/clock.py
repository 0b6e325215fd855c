"""
Simulation Clock
Virtual minutes advanced by wall-clock deltas and a speed multiplier.
"""

import logging
from typing import Iterable, Optional

from ..config import Constants, Settings

logger = logging.getLogger(__name__)


class SimulationClock:
    """
    Play/pause state machine over a bounded virtual timeline.

    The clock owns no timer; the caller drives it with ``tick()``.

    Example:
        >>> clock = SimulationClock(max_time=60, speed_multiplier=10)
        >>> clock.play()
        >>> clock.tick(6.0)
        1.0
    """

    def __init__(self, max_time: float = Settings.MIN_SIMULATION_MINUTES, speed_multiplier: int = 1) -> None:
        """
        Initialize clock.

        Args:
            max_time: End of the timeline in virtual minutes
            speed_multiplier: Virtual seconds per wall second

        Raises:
            ValueError: If max_time is negative or the multiplier is unsupported
        """
        if max_time < 0:
            raise ValueError(f"max_time must be non-negative, got {max_time}")

        self.max_time = float(max_time)
        self.current_time = 0.0
        self.is_playing = False
        self.speed_multiplier = 1
        self.set_speed(speed_multiplier)

    @classmethod
    def for_flights(
        cls, etas: Iterable[Optional[float]], speed_multiplier: int = 1
    ) -> "SimulationClock":
        """
        Size the timeline to the flights being simulated.

        The end is the largest ETA, with unknown ETAs counted as the
        minimum duration, clamped to [60, 120] minutes.

        Args:
            etas: ETA in minutes per flight (None if unknown)
            speed_multiplier: Initial speed

        Returns:
            New stopped clock at t=0
        """
        longest = max(
            (eta if eta is not None else Settings.MIN_SIMULATION_MINUTES for eta in etas),
            default=Settings.MIN_SIMULATION_MINUTES,
        )
        max_time = min(
            max(longest, Settings.MIN_SIMULATION_MINUTES), Settings.MAX_SIMULATION_MINUTES
        )
        return cls(max_time=max_time, speed_multiplier=speed_multiplier)

    @property
    def at_end(self) -> bool:
        return self.current_time >= self.max_time

    def play(self) -> None:
        """Start advancing; restarts from zero when at the end."""
        if self.at_end:
            self.current_time = 0.0
        self.is_playing = True

    def pause(self) -> None:
        self.is_playing = False

    def toggle(self) -> bool:
        """Flip between playing and paused; returns the new playing state."""
        if self.is_playing:
            self.pause()
        else:
            self.play()
        return self.is_playing

    def seek(self, time: float) -> float:
        """Jump to a virtual time, clamped to the timeline."""
        self.current_time = min(max(float(time), 0.0), self.max_time)
        return self.current_time

    def rewind(self) -> None:
        self.pause()
        self.current_time = 0.0

    def skip_to_end(self) -> None:
        self.pause()
        self.current_time = self.max_time

    def set_speed(self, multiplier: int) -> None:
        """
        Change the speed multiplier.

        Raises:
            ValueError: If the multiplier is not one of 1, 5, 10, 30, 60
        """
        if multiplier not in Settings.SPEED_MULTIPLIERS:
            raise ValueError(
                f"Unsupported speed multiplier {multiplier}, "
                f"expected one of {Settings.SPEED_MULTIPLIERS}"
            )
        self.speed_multiplier = multiplier

    def tick(self, delta_seconds: float) -> float:
        """
        Advance by a wall-clock delta while playing.

        Each wall second moves ``speed_multiplier`` virtual seconds. Reaching
        the end of the timeline clamps the time and stops the clock.

        Args:
            delta_seconds: Wall-clock seconds since the last tick

        Returns:
            Current virtual time in minutes
        """
        if not self.is_playing or delta_seconds <= 0:
            return self.current_time

        self.current_time += delta_seconds / Constants.MINUTES_PER_HOUR * self.speed_multiplier
        if self.current_time >= self.max_time:
            self.current_time = self.max_time
            self.is_playing = False
            logger.debug("Simulation reached end of timeline at %.1f min", self.max_time)

        return self.current_time
