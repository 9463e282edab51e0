"""Named registry of fusion combiners, as selected from the CLI or config."""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar, Literal

from latefusion.config import FusionConfig
from latefusion.fusion.combine import comb_max, comb_mnz, comb_sum, make_rrf, rrf

CombinerKind = Literal["score", "rank", "hybrid"]


class UnknownCombinerError(KeyError):
    """Raised when a combiner name is not registered."""

    def __init__(self, name: str, available: list[str]) -> None:
        super().__init__(name)
        self.name = name
        self.available = available

    def __str__(self) -> str:
        return f"unknown fusion method `{self.name}` (available: {', '.join(self.available)})"


@dataclass(frozen=True)
class Combiner:
    """A combination function together with the input it consumes."""

    name: str
    kind: CombinerKind
    func: Callable
    aliases: tuple[str, ...] = ()
    description: str = ""


class CombinerRegistry:
    """Maintains a mapping from lowercase name or alias -> combiner."""

    _registry: ClassVar[dict[str, Combiner]] = {}
    _canonical: ClassVar[dict[str, Combiner]] = {}

    @classmethod
    def register(cls, combiner: Combiner) -> Combiner:
        cls._canonical[combiner.name.lower()] = combiner
        for key in (combiner.name, *combiner.aliases):
            cls._registry[key.lower()] = combiner
        return combiner

    @classmethod
    def get(cls, name: str) -> Combiner:
        combiner = cls._registry.get(name.strip().lower())
        if combiner is None:
            raise UnknownCombinerError(name, cls.names())
        return combiner

    @classmethod
    def names(cls) -> list[str]:
        return list(cls._canonical)

    @classmethod
    def all(cls) -> list[Combiner]:
        return list(cls._canonical.values())


CombinerRegistry.register(
    Combiner("combmax", "score", comb_max, aliases=("max",), description="highest score")
)
CombinerRegistry.register(
    Combiner("combsum", "score", comb_sum, aliases=("sum",), description="sum of scores")
)
CombinerRegistry.register(
    Combiner(
        "combmnz", "score", comb_mnz, aliases=("mnz",),
        description="sum of scores times number of lists",
    )
)
CombinerRegistry.register(
    Combiner(
        "rrf", "rank", rrf, aliases=("reciprocal",),
        description="sum of 1 / (1 + k + rank)",
    )
)


def get_combiner(name: str, config: FusionConfig | None = None) -> Combiner:
    """Look up *name* case-insensitively, applying the RRF constant from *config*."""
    combiner = CombinerRegistry.get(name)
    if config is not None and combiner.func is rrf and config.rrf_k:
        combiner = dataclasses.replace(combiner, func=make_rrf(config.rrf_k))
    return combiner
