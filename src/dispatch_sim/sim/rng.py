# sim/rng.py
from __future__ import annotations

from dataclasses import dataclass
from functools import cache
from zlib import crc32

import numpy as np

PLACEMENT = "placement"
ROUTING = "routing"


def _norm(part: object) -> int:
    """Map a key part onto u32: ints by value, everything else by crc32 of its text."""
    if isinstance(part, (int, np.integer)):
        return int(part) & 0xFFFFFFFF
    text = part if isinstance(part, str) else repr(part)
    return crc32(text.encode("utf-8")) & 0xFFFFFFFF


@dataclass(frozen=True)
class RNGKey:
    stream: str
    parts: tuple[int, ...]  # crc of stream first, then normalized sub-keys

    @classmethod
    def from_parts(cls, stream: str, *parts: object) -> RNGKey:
        return cls(stream=stream, parts=(_norm(stream), *(_norm(p) for p in parts)))


class RNGRegistry:
    """
    Named numpy Generators for one scenario.

    A key's generator is seeded from [master_seed, scenario, *key.parts] alone,
    so opening streams in a different order never changes their draws. Agents
    are placed from the "placement" stream; agent i routes with its own
    ("routing", i) substream, which keeps one agent's choices independent of
    how many other agents exist.
    """

    def __init__(self, master_seed: int, *, scenario: str | int = 0):
        self.master_seed = _norm(master_seed)
        self.scenario_tag = _norm(str(scenario))

    @cache
    def generator(self, key: RNGKey) -> np.random.Generator:
        ss = np.random.SeedSequence(entropy=[self.master_seed, self.scenario_tag, *key.parts])
        return np.random.Generator(np.random.PCG64(ss))

    def stream(self, name: str) -> np.random.Generator:
        return self.generator(RNGKey.from_parts(name))

    def substream(self, name: str, *parts: object) -> np.random.Generator:
        return self.generator(RNGKey.from_parts(name, *parts))

    def placement(self) -> np.random.Generator:
        return self.stream(PLACEMENT)

    def routing(self, agent_id: int) -> np.random.Generator:
        return self.substream(ROUTING, agent_id)
