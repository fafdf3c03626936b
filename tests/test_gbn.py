import dataclasses
import io

import pytest

from netemu.gbn import GoBackN
from netemu.packet import NOT_IN_USE, Entity, Message, Packet, compute_checksum, is_corrupted
from netemu.simulator import SimulationConfig, Simulator, Statistics


class RecordingSimulator:
    def __init__(self, trace=0):
        self.stats = Statistics()
        self.time = 0.0
        self.trace = trace
        self.out = io.StringIO()
        self.sent = []
        self.timers_started = []
        self.timers_stopped = []
        self.delivered = []

    def to_layer3(self, entity, packet):
        self.sent.append((entity, packet))

    def start_timer(self, entity, increment):
        self.timers_started.append((entity, increment))

    def stop_timer(self, entity):
        self.timers_stopped.append(entity)

    def to_layer5(self, entity, data):
        self.delivered.append((entity, bytes(data)))


def make(trace=0, **kwargs):
    sim = RecordingSimulator(trace)
    protocol = GoBackN(**kwargs)
    protocol.a_init(sim)
    protocol.b_init(sim)
    return protocol, sim


def message(letter=b"a"):
    return Message(letter * 20)


def ack(acknum):
    return Packet.build(0, acknum, b"0" * 20)


def seqnums(sim, start=0):
    return [p.seqnum for _, p in sim.sent[start:]]


def test_output_sends_first_packet_and_starts_timer():
    protocol, sim = make()
    protocol.a_output(message())
    entity, packet = sim.sent[0]
    assert entity == Entity.A
    assert packet.seqnum == 0
    assert packet.acknum == NOT_IN_USE
    assert packet.payload == b"a" * 20
    assert not is_corrupted(packet)
    assert sim.timers_started == [(Entity.A, 16.0)]


def test_only_first_packet_in_window_starts_timer():
    protocol, sim = make()
    for letter in (b"a", b"b", b"c"):
        protocol.a_output(message(letter))
    assert seqnums(sim) == [0, 1, 2]
    assert len(sim.timers_started) == 1


def test_full_window_drops_message():
    protocol, sim = make()
    for _ in range(protocol.window_size + 1):
        protocol.a_output(message())
    assert len(sim.sent) == protocol.window_size
    assert sim.stats.window_full == 1


def test_sequence_numbers_wrap_around():
    protocol, sim = make(window_size=3, seq_space=4)
    for _ in range(3):
        protocol.a_output(message())
    protocol.a_input(ack(2))
    assert len(protocol.window) == 0
    assert sim.timers_stopped == [Entity.A]
    for _ in range(2):
        protocol.a_output(message())
    assert seqnums(sim) == [0, 1, 2, 3, 0]


def test_cumulative_ack_slides_window_and_restarts_timer():
    protocol, sim = make()
    for _ in range(3):
        protocol.a_output(message())
    protocol.a_input(ack(1))
    assert sim.stats.new_acks == 1
    assert sim.stats.total_acks_received == 1
    assert sim.timers_stopped == [Entity.A]
    assert len(sim.timers_started) == 2
    assert [p.seqnum for p in protocol.window] == [2]

    protocol.a_timer_interrupt()
    assert seqnums(sim, 3) == [2]
    assert sim.stats.packets_resent == 1


def test_ack_outside_window_is_ignored():
    protocol, sim = make()
    protocol.a_output(message())
    protocol.a_output(message())
    protocol.a_input(ack(5))
    assert sim.stats.total_acks_received == 1
    assert sim.stats.new_acks == 0
    assert sim.timers_stopped == []
    assert len(protocol.window) == 2


def test_ack_with_empty_window_is_duplicate():
    protocol, sim = make(trace=1)
    protocol.a_input(ack(0))
    assert sim.stats.total_acks_received == 1
    assert sim.stats.new_acks == 0
    assert "duplicate ACK received" in sim.out.getvalue()


def test_corrupted_ack_is_ignored():
    protocol, sim = make()
    protocol.a_output(message())
    good = ack(0)
    bad = dataclasses.replace(good, checksum=compute_checksum(good) + 1)
    protocol.a_input(bad)
    assert sim.stats.total_acks_received == 0
    assert len(protocol.window) == 1


def test_timeout_resends_whole_window():
    protocol, sim = make()
    for _ in range(3):
        protocol.a_output(message())
    protocol.a_timer_interrupt()
    assert seqnums(sim, 3) == [0, 1, 2]
    assert sim.stats.packets_resent == 3
    assert len(sim.timers_started) == 2


def test_receiver_delivers_in_order_packet_and_acks():
    protocol, sim = make()
    protocol.b_input(Packet.build(0, NOT_IN_USE, b"a" * 20))
    assert sim.delivered == [(Entity.B, b"a" * 20)]
    assert sim.stats.packets_received == 1
    entity, reply = sim.sent[0]
    assert entity == Entity.B
    assert reply.acknum == 0
    assert reply.seqnum == 1
    assert reply.payload == b"0" * 20
    assert not is_corrupted(reply)


def test_receiver_acks_alternate_sequence_numbers():
    protocol, sim = make()
    protocol.b_input(Packet.build(0, NOT_IN_USE, b"a" * 20))
    protocol.b_input(Packet.build(1, NOT_IN_USE, b"b" * 20))
    assert seqnums(sim) == [1, 0]


def test_receiver_reacks_last_on_out_of_order():
    protocol, sim = make()
    protocol.b_input(Packet.build(1, NOT_IN_USE, b"b" * 20))
    assert sim.delivered == []
    assert sim.sent[0][1].acknum == protocol.seq_space - 1


def test_receiver_rejects_corrupted_packet():
    protocol, sim = make()
    good = Packet.build(0, NOT_IN_USE, b"a" * 20)
    protocol.b_input(dataclasses.replace(good, payload=b"Z" + good.payload[1:]))
    assert sim.delivered == []
    assert sim.stats.packets_received == 0
    assert sim.sent[0][1].acknum == protocol.seq_space - 1


def test_receiver_expected_sequence_wraps():
    protocol, sim = make()
    for n in range(protocol.seq_space + 1):
        protocol.b_input(Packet.build(n % protocol.seq_space, NOT_IN_USE, b"a" * 20))
    assert len(sim.delivered) == protocol.seq_space + 1
    assert protocol.expected_seqnum == 1


def test_sequence_space_must_exceed_window():
    with pytest.raises(ValueError):
        GoBackN(window_size=7, seq_space=7)


def test_reliable_channel_delivers_every_message():
    config = SimulationConfig(num_messages=10, mean_interarrival=1000.0, trace=0)
    stats = Simulator(config, io.StringIO()).run(GoBackN())
    assert stats.messages_delivered == 10
    assert stats.packets_received == 10
    assert stats.window_full == 0


def test_lossy_channel_keeps_delivery_counts_consistent():
    config = SimulationConfig(
        num_messages=20,
        mean_interarrival=50.0,
        loss_prob=0.2,
        corrupt_prob=0.2,
        trace=0,
    )
    stats = Simulator(config, io.StringIO()).run(GoBackN())
    assert stats.messages_delivered == stats.packets_received
    assert stats.messages_delivered + stats.window_full <= stats.messages_generated
    assert stats.packets_lost > 0