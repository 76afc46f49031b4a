"""Model selection for aggregation queries."""

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class ModelFilter:
    """The models a query is restricted to.

    An empty filter means "no filter": every model matches.
    """

    models: tuple[str, ...] = ()

    @classmethod
    def resolve(cls, requested: Iterable[str] | None, available: Iterable[str]) -> "ModelFilter":
        """Keep the requested models that actually occur, in request order.

        Requesting only unknown models yields an empty (inactive) filter.
        """
        available_set = set(available)
        selected: list[str] = []
        for model in requested or ():
            if model in available_set and model not in selected:
                selected.append(model)
        return cls(tuple(selected))

    @property
    def active(self) -> bool:
        return bool(self.models)

    def matches(self, model: str) -> bool:
        return not self.models or model in self.models
