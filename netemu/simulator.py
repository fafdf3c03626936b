"""Discrete-event emulation of an unreliable layer-3 channel between two entities."""

from __future__ import annotations

import abc
import bisect
import dataclasses
import random as _random
import sys
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional, TextIO

from netemu.packet import PAYLOAD_SIZE, Entity, Message, Packet

_SANITY_DRAWS = 1000
_CORRUPT_VALUE = 999999


class EventType(IntEnum):
    """Kinds of events on the event list."""

    TIMER_INTERRUPT = 0
    FROM_LAYER5 = 1
    FROM_LAYER3 = 2


@dataclass(frozen=True)
class Event:
    """A scheduled occurrence at one entity."""

    time: float
    kind: EventType
    entity: Entity
    packet: Optional[Packet] = None


@dataclass
class Statistics:
    """Counters kept by the emulator and by the protocol running on it."""

    window_full: int = 0
    total_acks_received: int = 0
    packets_resent: int = 0
    new_acks: int = 0
    packets_received: int = 0
    messages_delivered: int = 0
    packets_to_layer3: int = 0
    packets_lost: int = 0
    packets_corrupted: int = 0
    messages_generated: int = 0
    end_time: float = 0.0


@dataclass(frozen=True)
class SimulationConfig:
    """Parameters of one emulation run.

    ``corrupt_direction`` is 0 for A->B only, 1 for B->A only and 2 for both.
    """

    num_messages: int
    mean_interarrival: float
    loss_prob: float = 0.0
    corrupt_prob: float = 0.0
    corrupt_direction: int = 2
    trace: int = 3
    seed: int = 9999
    bidirectional: bool = False


class Protocol(abc.ABC):
    """Transport-layer entities driven by the simulator."""

    @abc.abstractmethod
    def a_init(self, simulator: "Simulator") -> None:
        """Prepare entity A before any event is processed."""

    @abc.abstractmethod
    def a_output(self, message: Message) -> None:
        """Handle a message from A's application layer."""

    @abc.abstractmethod
    def a_input(self, packet: Packet) -> None:
        """Handle a packet arriving at A from the network."""

    @abc.abstractmethod
    def a_timer_interrupt(self) -> None:
        """Handle expiry of A's timer."""

    @abc.abstractmethod
    def b_init(self, simulator: "Simulator") -> None:
        """Prepare entity B before any event is processed."""

    def b_output(self, message: Message) -> None:
        """Handle a message from B's application layer; simplex transfer ignores it."""

    @abc.abstractmethod
    def b_input(self, packet: Packet) -> None:
        """Handle a packet arriving at B from the network."""

    def b_timer_interrupt(self) -> None:
        """Handle expiry of B's timer; simplex transfer ignores it."""


_EVENT_LABELS = {
    EventType.TIMER_INTERRUPT: ", timerinterrupt  ",
    EventType.FROM_LAYER5: ", fromlayer5 ",
    EventType.FROM_LAYER3: ", fromlayer3 ",
}


class Simulator:
    """Emulates the network below the transport layer and runs the event loop."""

    def __init__(self, config: SimulationConfig, out: Optional[TextIO] = None) -> None:
        self.config = config
        self.out = out if out is not None else sys.stdout
        self.trace = config.trace
        self.stats = Statistics()
        self.events: list[Event] = []
        self.time = 0.0
        self._rng = _random.Random(config.seed)

        average = sum(self.random() for _ in range(_SANITY_DRAWS)) / _SANITY_DRAWS
        if not 0.25 <= average <= 0.75:
            raise RuntimeError("random number generation is not uniform on [0, 1]")

        self._generate_next_arrival()

    def _say(self, text: str) -> None:
        print(text, file=self.out)

    def random(self) -> float:
        """Return a uniform random number in [0, 1)."""
        x = self._rng.random()
        if self.trace > 3:
            self._say(f"RANDOM NUMBER GENERAION CALLED: {x:f}")
        return x

    def insert_event(self, event: Event) -> None:
        """Place an event on the list, ahead of any already due at the same time."""
        if self.trace > 2:
            self._say(f"            INSERTEVENT: time is {self.time:f}")
            self._say(f"            INSERTEVENT: future time will be {event.time:f}")
        position = bisect.bisect_left(self.events, event.time, key=lambda e: e.time)
        self.events.insert(position, event)

    def format_event_list(self) -> str:
        """Render the pending events, one per line."""
        lines = ["--------------", "Event List Follows:"]
        lines.extend(
            f"Event time: {e.time:f}, type: {int(e.kind)} entity: {int(e.entity)}"
            for e in self.events
        )
        lines.append("--------------")
        return "\n".join(lines) + "\n"

    def _generate_next_arrival(self) -> None:
        if self.trace > 2:
            self._say("          GENERATE NEXT ARRIVAL: creating new arrival")
        delay = self.config.mean_interarrival * self.random() * 2
        entity = Entity.A
        if self.config.bidirectional and self.random() > 0.5:
            entity = Entity.B
        self.insert_event(Event(self.time + delay, EventType.FROM_LAYER5, entity))

    def _find_timer(self, entity: Entity) -> Optional[Event]:
        return next(
            (e for e in self.events if e.kind is EventType.TIMER_INTERRUPT and e.entity == entity),
            None,
        )

    def start_timer(self, entity: Entity, increment: float) -> None:
        """Schedule a timer interrupt for an entity, unless one is already running."""
        if self.trace > 1:
            self._say(f"          START TIMER: starting timer at {self.time:f}")
        if self._find_timer(entity) is not None:
            self._say("Warning: attempt to start a timer that is already started")
            return
        self.insert_event(
            Event(self.time + increment, EventType.TIMER_INTERRUPT, Entity(entity))
        )

    def stop_timer(self, entity: Entity) -> None:
        """Cancel an entity's running timer."""
        if self.trace > 1:
            self._say(f"          STOP TIMER: stopping timer at {self.time:f}")
        timer = self._find_timer(entity)
        if timer is None:
            self._say("Warning: unable to cancel your timer. It wasn't running.")
            return
        self.events.remove(timer)

    def _affected(self, entity: Entity) -> bool:
        direction = self.config.corrupt_direction
        return not (entity == Entity.B and direction == Entity.A) and not (
            entity == Entity.A and direction == Entity.B
        )

    def to_layer3(self, entity: Entity, packet: Packet) -> None:
        """Send a packet into the network, where it may be lost or corrupted."""
        self.stats.packets_to_layer3 += 1
        entity = Entity(entity)

        if self.random() < self.config.loss_prob and self._affected(entity):
            self.stats.packets_lost += 1
            if self.trace > 0:
                self._say("          TOLAYER3: packet being lost")
            return

        if self.trace > 2:
            self._say(
                f"          TOLAYER3: seq: {packet.seqnum}, ack {packet.acknum}, "
                f"check: {packet.checksum} {packet.payload.decode('latin-1')}"
            )

        destination = entity.other()
        last_time = self.time
        for pending in self.events:
            if pending.kind is EventType.FROM_LAYER3 and pending.entity == destination:
                last_time = pending.time
        arrival = last_time + 1 + 9 * self.random()

        if self.random() < self.config.corrupt_prob and self._affected(entity):
            self.stats.packets_corrupted += 1
            x = self.random()
            if x < 0.75:
                packet = dataclasses.replace(packet, payload=b"Z" + packet.payload[1:])
            elif x < 0.875:
                packet = dataclasses.replace(packet, seqnum=_CORRUPT_VALUE)
            else:
                packet = dataclasses.replace(packet, acknum=_CORRUPT_VALUE)
            if self.trace > 0:
                self._say("          TOLAYER3: packet being corrupted")

        if self.trace > 2:
            self._say("          TOLAYER3: scheduling arrival on other side")
        self.insert_event(Event(arrival, EventType.FROM_LAYER3, destination, packet))

    def to_layer5(self, entity: Entity, data: bytes) -> None:
        """Deliver data to an entity's application layer."""
        if self.trace > 2:
            name = "A" if entity == Entity.A else "B"
            self._say(
                f"          TOLAYER5: data received by application at {name}: "
                f"{bytes(data).decode('latin-1')}"
            )
        self.stats.messages_delivered += 1

    def _from_layer5(self, protocol: Protocol, entity: Entity) -> None:
        if self.stats.messages_generated >= self.config.num_messages:
            if self.trace > 2:
                self._say("          FROM_LAYER5: no more messages to send: ")
            return
        self._generate_next_arrival()
        letter = ord("a") + self.stats.messages_generated % 26
        message = Message(bytes([letter]) * PAYLOAD_SIZE)
        if self.trace > 2:
            self._say(
                f"          MAINLOOP: data given to student: {message.data.decode('latin-1')}"
            )
        self.stats.messages_generated += 1
        if entity == Entity.A:
            protocol.a_output(message)
        else:
            protocol.b_output(message)

    def run(self, protocol: Protocol) -> Statistics:
        """Initialise the protocol and process events until none remain."""
        protocol.a_init(self)
        protocol.b_init(self)

        while self.events:
            event = self.events.pop(0)
            if self.trace >= 2:
                self._say(
                    f"\nEVENT time: {event.time:f},  type: {int(event.kind)}"
                    f"{_EVENT_LABELS[event.kind]} entity: {int(event.entity)}"
                )
            self.time = event.time
            if event.kind is EventType.FROM_LAYER5:
                self._from_layer5(protocol, event.entity)
            elif event.kind is EventType.FROM_LAYER3:
                if event.entity == Entity.A:
                    protocol.a_input(event.packet)
                else:
                    protocol.b_input(event.packet)
            elif event.entity == Entity.A:
                protocol.a_timer_interrupt()
            else:
                protocol.b_timer_interrupt()

        self.stats.end_time = self.time
        return self.stats