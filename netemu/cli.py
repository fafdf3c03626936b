"""Interactive command that configures and runs one emulation."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable, Iterator
from typing import Optional, TextIO

from netemu.gbn import GoBackN
from netemu.packet import Entity
from netemu.simulator import Protocol, SimulationConfig, Simulator, Statistics
from netemu.sr import SelectiveRepeat

_BANNER = "-----  Stop and Wait Network Simulator Version 1.1 -------- \n"

_PROTOCOLS: dict[str, Callable[[], Protocol]] = {
    "gbn": GoBackN,
    "sr": SelectiveRepeat,
}


def _parse(text: str, kind: type, what: str):
    try:
        return kind(text)
    except ValueError:
        raise ValueError(f"invalid {what}: {text!r}") from None


def prompt_config(ask: Callable[[str], str]) -> SimulationConfig:
    """Build a configuration from answers returned by ``ask`` for each prompt."""
    num_messages = _parse(
        ask("Enter the number of messages to simulate: "), int, "number of messages"
    )
    loss_prob = _parse(
        ask("Enter  packet loss probability [enter 0.0 for no loss]:"),
        float,
        "loss probability",
    )
    corrupt_prob = _parse(
        ask("Enter packet corruption probability [0.0 for no corruption]:"),
        float,
        "corruption probability",
    )
    corrupt_direction = int(Entity.A)
    if loss_prob != 0.0 or corrupt_prob != 0.0:
        corrupt_direction = _parse(
            ask(
                "If you want loss or corruption to only occur in one direction, "
                "choose the direction: 0 A->B, 1 A<-B, 2 A<->B (both directions) :"
            ),
            int,
            "direction",
        )
    mean_interarrival = _parse(
        ask("Enter average time between messages from sender's layer5 [ > 0.0]:"),
        float,
        "average time between messages",
    )
    trace = _parse(ask("Enter TRACE:"), int, "trace level")
    return SimulationConfig(
        num_messages=num_messages,
        mean_interarrival=mean_interarrival,
        loss_prob=loss_prob,
        corrupt_prob=corrupt_prob,
        corrupt_direction=corrupt_direction,
        trace=trace,
    )


def format_report(statistics: Statistics) -> str:
    """Render the end-of-run summary."""
    lines = [
        f" Simulator terminated at time {statistics.end_time:f}",
        f" after attempting to send {statistics.messages_generated} msgs from layer5",
        f"number of messages dropped due to full window:  {statistics.window_full} ",
        "number of valid (not corrupt or duplicate) acknowledgements received at A:  "
        f"{statistics.new_acks} ",
        "(note: a single acknowledgement may have acknowledged more than one packet "
        "- if cumulative acknowledgements are used)",
        f"number of packet resends by A:  {statistics.packets_resent} ",
        f"number of correct packets received at B:  {statistics.packets_received} ",
        f"number of messages delivered to application:  {statistics.messages_delivered} ",
    ]
    return "\n".join(lines) + "\n"


def _tokens(stream: TextIO) -> Iterator[str]:
    for line in stream:
        yield from line.split()


def _console_asker(stream: TextIO, out: TextIO) -> Callable[[str], str]:
    tokens = _tokens(stream)

    def ask(prompt: str) -> str:
        print(prompt, end="", file=out, flush=True)
        try:
            return next(tokens)
        except StopIteration:
            raise EOFError("input ended before all parameters were given") from None

    return ask


def main(argv: Optional[list[str]] = None) -> int:
    """Prompt for parameters on standard input, run the emulation and print a report."""
    parser = argparse.ArgumentParser(
        prog="netemu", description="Emulate a transport protocol over a lossy channel."
    )
    parser.add_argument(
        "--protocol",
        choices=sorted(_PROTOCOLS),
        default="gbn",
        help="transport protocol to run (default: gbn)",
    )
    args = parser.parse_args(argv)

    out = sys.stdout
    print(_BANNER, file=out)
    try:
        config = prompt_config(_console_asker(sys.stdin, out))
    except (ValueError, EOFError) as error:
        print(f"\nerror: {error}", file=sys.stderr)
        return 1

    try:
        simulator = Simulator(config, out)
    except RuntimeError:
        print("It is likely that random number generation on your machine", file=out)
        print("is different from what this emulator expects.  Please take", file=out)
        print("a look at the random number routine in the emulator code. Sorry. ", file=out)
        return 1

    statistics = simulator.run(_PROTOCOLS[args.protocol]())
    out.write(format_report(statistics))
    return 0


if __name__ == "__main__":
    sys.exit(main())