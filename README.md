# netemu

A discrete-event emulator of an unreliable network channel between two hosts,
A and B, with two reliable transport protocols that run over it:

- **Go-Back-N** (`netemu.gbn.GoBackN`): a windowed sender with cumulative
  acknowledgements and a single retransmission timer, and an in-order
  receiver that re-acknowledges the last good packet on loss or corruption.
- **Selective Repeat** (`netemu.sr.SelectiveRepeat`): per-packet
  acknowledgements, with the receiver buffering out-of-order packets and
  delivering them in sequence.

The channel keeps packets in order but can lose them, or corrupt them (the
first payload byte, the sequence number or the acknowledgement number), with
probabilities you choose. Messages of 20 bytes (`aaaa…`, `bbbb…`, …) arrive from
the application layer at A at random intervals averaging the chosen mean, and
a run ends when no events are left.

## Installation

```
pip install .
```

## Command line

```
netemu [--protocol {gbn,sr}]
```

`--protocol` selects the transport protocol (default `gbn`). The command then
reads its parameters from standard input, as whitespace-separated values:

1. the number of messages to simulate,
2. the packet loss probability,
3. the packet corruption probability,
4. only when loss or corruption is non-zero: the direction they apply to
   (0 for A to B, 1 for B to A, 2 for both),
5. the average time between messages from the sender's application layer,
6. the trace level; higher levels print more detail about each event
   (above 3, every random draw is printed too).

An unparsable value or input that ends early prints an error and exits with
status 1. At the end of a run the command prints the simulated time at which
it stopped, the number of messages generated, the number of messages dropped
because the window was full, the number of valid ACKs received at A, the
number of resends by A, the number of correct packets received at B and the
number of messages delivered to the application.

## Library use

```python
from netemu.simulator import SimulationConfig, Simulator
from netemu.gbn import GoBackN
from netemu.cli import format_report

config = SimulationConfig(
    num_messages=20,
    mean_interarrival=10.0,
    loss_prob=0.1,
    corrupt_prob=0.1,
    corrupt_direction=2,
    trace=0,
)
simulator = Simulator(config)          # trace output goes to sys.stdout by default
stats = simulator.run(GoBackN(rtt=16.0, window_size=6, seq_space=7))
print(format_report(stats))
```

`SimulationConfig` also takes `seed` (default 9999) for the random number
generator and `bidirectional` (default `False`), which lets message arrivals
be assigned to B as well as A. `Simulator` raises `RuntimeError` if its
random numbers fail a uniformity check on start-up.

`Simulator.run` returns a `Statistics` object (also available as
`simulator.stats`) with these counters: `window_full`, `total_acks_received`,
`packets_resent`, `new_acks`, `packets_received`, `messages_delivered`,
`packets_to_layer3`, `packets_lost`, `packets_corrupted`,
`messages_generated` and `end_time`.

`GoBackN` defaults to `rtt=16.0, window_size=6, seq_space=7`;
`SelectiveRepeat` to `rtt=16.0, window_size=6, seq_space=12`. Both raise
`ValueError` unless the window size is at least 1 and the sequence space is at
least the window size plus one.

### Packets

`netemu.packet` holds `Entity` (`A`, `B`, with `other()`), `Message` and
`Packet`. Payloads are exactly 20 bytes; anything else raises `ValueError`.
`Packet.build(seqnum, acknum, payload)` creates a packet with a correct
checksum, and `compute_checksum` and `is_corrupted` perform the check both
protocols use: the sum of the sequence number, the acknowledgement number and
the payload bytes taken as signed characters.

### Writing a protocol

Subclass `netemu.simulator.Protocol` and implement `a_init`, `a_output`,
`a_input`, `a_timer_interrupt`, `b_init` and `b_input`; `b_output` and
`b_timer_interrupt` do nothing unless overridden. The init methods receive
the simulator, on which a handler can call `start_timer`, `stop_timer`,
`to_layer3` and `to_layer5`, and read `time`, `trace`, `out` and `stats`.
`format_event_list()` renders the pending events, and `insert_event()` adds
one ahead of any already due at the same time.

## Limitations

- Both protocols transfer data one way only, from A to B; messages handed to
  B's application layer input and B's timer are ignored.
- `SelectiveRepeat` writes its progress lines to the simulator's output
  whatever the trace level, and it updates none of the protocol counters
  (`window_full`, `new_acks`, `total_acks_received`, `packets_resent`,
  `packets_received`); only the channel counters and `messages_delivered`
  are counted in its runs. Its sender shares one timer among all
  outstanding packets.
- The command has no option for `seed` or `bidirectional`; use the library
  for those.