"""
Base class for interaction data sources.
The engine hands every lookup a normalized drug name; a source returns the
records it knows about, or raises. Failure handling belongs to the engine.
"""

from abc import ABC, abstractmethod
from typing import Optional

from petcheck.models.interaction import ConditionInteraction, DrugInteraction, SpeciesInteraction
from petcheck.models.vocabulary import SpeciesCategory


class InteractionDataSource(ABC):
    """Abstract base class for interaction knowledge bases."""

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Human-readable name of this data source."""
        ...

    @abstractmethod
    def lookup_drug_drug(self, name_a: str, name_b: str) -> list[DrugInteraction]:
        """Interactions between two distinct normalized drug names."""
        ...

    @abstractmethod
    def lookup_species(self, name: str, species: SpeciesCategory) -> list[SpeciesInteraction]:
        """Concerns for one drug in one species."""
        ...

    @abstractmethod
    def lookup_condition(self, name: str, condition: str,
                         species: Optional[SpeciesCategory] = None) -> list[ConditionInteraction]:
        """Concerns for one drug given a free-text medical condition.

        `species` narrows rules that only apply to certain species.
        """
        ...
