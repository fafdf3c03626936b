"""Selective-repeat transport entities with per-packet acknowledgements."""

from __future__ import annotations

from typing import Optional

from netemu.packet import NOT_IN_USE, PAYLOAD_SIZE, Entity, Message, Packet, is_corrupted
from netemu.simulator import Protocol, Simulator

_ACK_PAYLOAD = b"ACK".ljust(PAYLOAD_SIZE, b"\0")


class SelectiveRepeat(Protocol):
    """Selective repeat: B buffers out-of-order packets and acknowledges each one."""

    def __init__(self, rtt: float = 16.0, window_size: int = 6, seq_space: int = 12) -> None:
        if window_size < 1:
            raise ValueError("window size must be at least 1")
        if seq_space < window_size + 1:
            raise ValueError("sequence space must be at least window size + 1")
        self.rtt = rtt
        self.window_size = window_size
        self.seq_space = seq_space
        self.base = 0
        self.next_seqnum = 0
        self.expected_seqnum = 0
        self._sent: list[Optional[Packet]] = [None] * seq_space
        self._acked = [False] * seq_space
        self._in_use = [False] * seq_space
        self._timer_start = [0.0] * seq_space
        self._recv_buffer: list[Optional[Packet]] = [None] * seq_space
        self._received = [False] * seq_space
        self._sim: Optional[Simulator] = None

    def _say(self, text: str) -> None:
        print(text, file=self._sim.out)

    def _valid(self, seqnum: int) -> bool:
        return 0 <= seqnum < self.seq_space

    # ----- sender (A) -----

    def a_init(self, simulator: Simulator) -> None:
        self._sim = simulator
        self.base = 0
        self.next_seqnum = 0
        self._sent = [None] * self.seq_space
        self._acked = [False] * self.seq_space
        self._in_use = [False] * self.seq_space
        self._timer_start = [0.0] * self.seq_space

    def a_output(self, message: Message) -> None:
        sim = self._sim
        outstanding = (self.next_seqnum - self.base) % self.seq_space
        if outstanding >= self.window_size:
            self._say("SR_A_output: Window full, dropping message")
            return

        seqnum = self.next_seqnum
        packet = Packet.build(seqnum, NOT_IN_USE, message.data)
        self._sent[seqnum] = packet
        self._acked[seqnum] = False
        self._in_use[seqnum] = True

        sim.to_layer3(Entity.A, packet)
        sim.start_timer(Entity.A, self.rtt)
        self._timer_start[seqnum] = sim.time

        self._say(f"SR_A_output: Sent packet {seqnum}")
        self.next_seqnum = (seqnum + 1) % self.seq_space

    def a_input(self, packet: Packet) -> None:
        if is_corrupted(packet):
            self._say("SR_A_input: Corrupted ACK received, ignored")
            return
        acknum = packet.acknum
        if not self._valid(acknum) or not self._in_use[acknum]:
            self._say(f"SR_A_input: ACK for unused seq {acknum}, ignoring")
            return
        self._acked[acknum] = True
        self._in_use[acknum] = False
        self._sim.stop_timer(Entity.A)
        self._say(f"SR_A_input: ACK received for packet {acknum}")

    def a_timer_interrupt(self) -> None:
        sim = self._sim
        oldest: Optional[int] = None
        oldest_time = sim.time
        for seqnum, started in enumerate(self._timer_start):
            if self._in_use[seqnum] and not self._acked[seqnum] and started < oldest_time:
                oldest = seqnum
                oldest_time = started
        if oldest is None:
            return
        sim.to_layer3(Entity.A, self._sent[oldest])
        sim.start_timer(Entity.A, self.rtt)
        self._timer_start[oldest] = sim.time
        self._say(f"SR_A_timerinterrupt: Timeout for packet {oldest}, retransmitted")

    # ----- receiver (B) -----

    def b_init(self, simulator: Simulator) -> None:
        self._sim = simulator
        self.expected_seqnum = 0
        self._recv_buffer = [None] * self.seq_space
        self._received = [False] * self.seq_space

    def b_input(self, packet: Packet) -> None:
        sim = self._sim
        if is_corrupted(packet) or not self._valid(packet.seqnum):
            self._say(f"SR_B_input: Corrupted packet {packet.seqnum}, discarded")
            return

        ack = Packet.build(0, packet.seqnum, _ACK_PAYLOAD)
        sim.to_layer3(Entity.B, ack)
        self._say(f"SR_B_input: Sent ACK for {packet.seqnum}")

        if not self._received[packet.seqnum]:
            self._recv_buffer[packet.seqnum] = packet
            self._received[packet.seqnum] = True
            self._say(f"SR_B_input: Buffered packet {packet.seqnum}")

        while self._received[self.expected_seqnum]:
            seqnum = self.expected_seqnum
            sim.to_layer5(Entity.B, self._recv_buffer[seqnum].payload)
            self._say(f"SR_B_input: Delivered packet {seqnum} to layer5")
            self._received[seqnum] = False
            self.expected_seqnum = (seqnum + 1) % self.seq_space