"""Pure domain logic: decide, evolve and projection mapping. No I/O."""

from timeledger.core.decide import decide, decide_register
from timeledger.core.evolve import evolve, fold
from timeledger.core.projections import Mutation, Upsert, apply

__all__ = ["Mutation", "Upsert", "apply", "decide", "decide_register", "evolve", "fold"]
