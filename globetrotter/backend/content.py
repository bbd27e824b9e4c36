"""Destination, clue and fact lookups used to build questions."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Protocol


class ContentUnavailableError(LookupError):
    """A question could not be assembled from the content source."""


@dataclass(frozen=True)
class Destination:
    id: str
    name: str
    clues: tuple[str, ...]
    facts: tuple[str, ...]
    image_url: str | None = None


class ContentProvider(Protocol):
    async def get_destinations(self) -> list[Destination]:
        """Return every destination."""

    async def get_destination(self, destination_id: str) -> Destination:
        """Return the destination with ``destination_id``."""

    async def get_random_destination(self) -> Destination:
        """Return one destination chosen at random."""

    async def get_random_options(self, correct: Destination, count: int = 4) -> list[Destination]:
        """Return ``count`` shuffled options that include ``correct``."""

    async def get_clue_by_index(self, destination: Destination, index: int) -> str:
        """Return the clue at ``index``."""

    async def get_random_clue(self, destination: Destination) -> str:
        """Return one clue chosen at random."""

    async def get_random_fact(self, destination: Destination) -> str:
        """Return one fact chosen at random."""


DEFAULT_DESTINATIONS: tuple[Destination, ...] = (
    Destination(
        id="1",
        name="Eiffel Tower",
        clues=(
            "I am an iron lady standing tall in the city of love.",
            "Built for a world exposition, I was once considered an eyesore.",
            "From my top, you can see the entire city spread below like a map.",
        ),
        facts=(
            "I was built by Gustave Eiffel for the 1889 World's Fair.",
            "I'm 324 meters tall and was the tallest structure in the world until 1930.",
        ),
    ),
    Destination(
        id="2",
        name="Taj Mahal",
        clues=(
            "I am a marble mausoleum built as a testament to love.",
            "My reflection in water is almost as famous as my structure.",
            "My design incorporates Persian, Islamic, and Indian architectural styles.",
        ),
        facts=(
            "I was commissioned in 1632 by the Mughal emperor Shah Jahan.",
            "My marble changes color depending on the time of day.",
        ),
    ),
    Destination(
        id="3",
        name="Statue of Liberty",
        clues=(
            "I was a gift from one republic to another.",
            "My torch lights the way to freedom.",
            "I stand on an island welcoming visitors to a new world.",
        ),
        facts=(
            "I was designed by French sculptor Frederic Auguste Bartholdi.",
            "My copper skin is only 3/32 of an inch thick.",
        ),
    ),
    Destination(
        id="4",
        name="Great Wall of China",
        clues=(
            "I was built to protect an ancient empire from invaders.",
            "I snake across mountains and valleys for thousands of miles.",
        ),
        facts=(
            "I was built over approximately 2,000 years by different dynasties.",
            "I have been a UNESCO World Heritage Site since 1987.",
        ),
    ),
    Destination(
        id="5",
        name="Machu Picchu",
        clues=(
            "I am a hidden city in the clouds.",
            "I was built by an ancient civilization and later abandoned.",
        ),
        facts=(
            "I was built around 1450 at the height of the Inca Empire.",
            "My name in Quechua means 'Old Mountain'.",
        ),
    ),
    Destination(
        id="6",
        name="Colosseum",
        clues=(
            "I am an ancient amphitheater where gladiators once fought.",
            "I could hold up to 80,000 spectators in my prime.",
        ),
        facts=(
            "My original name was the Flavian Amphitheater.",
            "I am the largest amphitheater ever built.",
        ),
    ),
    Destination(
        id="7",
        name="Petra",
        clues=(
            "I am a city carved into rose-colored rock.",
            "I was lost to the Western world for hundreds of years.",
        ),
        facts=(
            "I was the capital of the Nabataean Kingdom.",
            "My most famous structure is Al-Khazneh, also known as The Treasury.",
        ),
    ),
    Destination(
        id="8",
        name="Sydney Opera House",
        clues=(
            "My distinctive sail-shaped shells make me instantly recognizable.",
            "I stand at the edge of a beautiful harbor in the Southern Hemisphere.",
        ),
        facts=(
            "I was designed by Danish architect Jorn Utzon.",
            "I was designated as a UNESCO World Heritage Site in 2007.",
        ),
    ),
)


@dataclass
class InMemoryContentProvider:
    destinations: tuple[Destination, ...] = DEFAULT_DESTINATIONS
    rng: random.Random = field(default_factory=random.Random)

    async def get_destinations(self) -> list[Destination]:
        return list(self.destinations)

    async def get_destination(self, destination_id: str) -> Destination:
        for destination in self.destinations:
            if destination.id == destination_id:
                return destination
        raise ContentUnavailableError(f"unknown destination {destination_id!r}")

    async def get_random_destination(self) -> Destination:
        if not self.destinations:
            raise ContentUnavailableError("no destinations available")
        return self.rng.choice(self.destinations)

    async def get_random_options(self, correct: Destination, count: int = 4) -> list[Destination]:
        others = [destination for destination in self.destinations if destination.id != correct.id]
        self.rng.shuffle(others)
        options = others[: max(count - 1, 0)]
        options.append(correct)
        self.rng.shuffle(options)
        return options

    async def get_clue_by_index(self, destination: Destination, index: int) -> str:
        if index < 0 or index >= len(destination.clues):
            raise ContentUnavailableError(f"{destination.name} has no clue #{index}")
        return destination.clues[index]

    async def get_random_clue(self, destination: Destination) -> str:
        if not destination.clues:
            raise ContentUnavailableError(f"{destination.name} has no clues")
        return self.rng.choice(destination.clues)

    async def get_random_fact(self, destination: Destination) -> str:
        if not destination.facts:
            raise ContentUnavailableError(f"{destination.name} has no facts")
        return self.rng.choice(destination.facts)
