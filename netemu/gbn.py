"""Go-Back-N transport entities: a windowed sender at A and an in-order receiver at B."""

from __future__ import annotations

from collections import deque
from typing import Optional

from netemu.packet import NOT_IN_USE, PAYLOAD_SIZE, Entity, Message, Packet, is_corrupted
from netemu.simulator import Protocol, Simulator

_ACK_PAYLOAD = b"0" * PAYLOAD_SIZE


class GoBackN(Protocol):
    """Go-Back-N with cumulative acknowledgements and a single retransmission timer."""

    def __init__(self, rtt: float = 16.0, window_size: int = 6, seq_space: int = 7) -> None:
        if window_size < 1:
            raise ValueError("window size must be at least 1")
        if seq_space < window_size + 1:
            raise ValueError("sequence space must be at least window size + 1")
        self.rtt = rtt
        self.window_size = window_size
        self.seq_space = seq_space
        self.window: deque[Packet] = deque()
        self.next_seqnum = 0
        self.expected_seqnum = 0
        self.b_seqnum = 1
        self._sim: Optional[Simulator] = None

    def _trace(self, level: int, text: str) -> None:
        if self._sim.trace > level:
            print(text, file=self._sim.out)

    # ----- sender (A) -----

    def a_init(self, simulator: Simulator) -> None:
        self._sim = simulator
        self.next_seqnum = 0
        self.window.clear()

    def a_output(self, message: Message) -> None:
        sim = self._sim
        if len(self.window) >= self.window_size:
            self._trace(0, "----A: New message arrives, send window is full")
            sim.stats.window_full += 1
            return

        self._trace(
            1, "----A: New message arrives, send window is not full, send new messge to layer3!"
        )
        packet = Packet.build(self.next_seqnum, NOT_IN_USE, message.data)
        self.window.append(packet)

        self._trace(0, f"Sending packet {packet.seqnum} to layer 3")
        sim.to_layer3(Entity.A, packet)

        if len(self.window) == 1:
            sim.start_timer(Entity.A, self.rtt)

        self.next_seqnum = (self.next_seqnum + 1) % self.seq_space

    def _in_window(self, acknum: int) -> bool:
        first = self.window[0].seqnum
        last = self.window[-1].seqnum
        if first <= last:
            return first <= acknum <= last
        return acknum >= first or acknum <= last

    def a_input(self, packet: Packet) -> None:
        sim = self._sim
        if is_corrupted(packet):
            self._trace(0, "----A: corrupted ACK is received, do nothing!")
            return

        self._trace(0, f"----A: uncorrupted ACK {packet.acknum} is received")
        sim.stats.total_acks_received += 1

        if not self.window:
            self._trace(0, "----A: duplicate ACK received, do nothing!")
            return
        if not self._in_window(packet.acknum):
            return

        self._trace(0, f"----A: ACK {packet.acknum} is not a duplicate")
        sim.stats.new_acks += 1

        first = self.window[0].seqnum
        if packet.acknum >= first:
            ack_count = packet.acknum + 1 - first
        else:
            ack_count = self.seq_space - first + packet.acknum
        for _ in range(min(ack_count, len(self.window))):
            self.window.popleft()

        sim.stop_timer(Entity.A)
        if self.window:
            sim.start_timer(Entity.A, self.rtt)

    def a_timer_interrupt(self) -> None:
        sim = self._sim
        self._trace(0, "----A: time out,resend packets!")
        for position, packet in enumerate(list(self.window)):
            self._trace(0, f"---A: resending packet {packet.seqnum}")
            sim.to_layer3(Entity.A, packet)
            sim.stats.packets_resent += 1
            if position == 0:
                sim.start_timer(Entity.A, self.rtt)

    # ----- receiver (B) -----

    def b_init(self, simulator: Simulator) -> None:
        self._sim = simulator
        self.expected_seqnum = 0
        self.b_seqnum = 1

    def b_input(self, packet: Packet) -> None:
        sim = self._sim
        if not is_corrupted(packet) and packet.seqnum == self.expected_seqnum:
            self._trace(0, f"----B: packet {packet.seqnum} is correctly received, send ACK!")
            sim.stats.packets_received += 1
            sim.to_layer5(Entity.B, packet.payload)
            acknum = self.expected_seqnum
            self.expected_seqnum = (self.expected_seqnum + 1) % self.seq_space
        else:
            self._trace(
                0, "----B: packet corrupted or not expected sequence number, resend ACK!"
            )
            acknum = (self.expected_seqnum - 1) % self.seq_space

        ack = Packet.build(self.b_seqnum, acknum, _ACK_PAYLOAD)
        self.b_seqnum = (self.b_seqnum + 1) % 2
        sim.to_layer3(Entity.B, ack)