"""
Attribute Extractor - weighted character sheet generator and selection flow.

The extractor produces candidate sheets for a new character:
- Role (Sentinel / Guide / Civilian / Ghost)
- Mental and physical rank (D through SSS, or None where the role forbids it)
- Starting gold
- Ability affinity
- Spirit (companion entity, Sentinel/Guide only)

A session draws up to MAX_DRAWS candidates, the player picks one, Sentinels
and Guides may replace their spirit with a custom one, and the chosen sheet
is submitted exactly once. A failed submission unlocks the session so the
player can pick again.

Phase flow:
    DRAWING -> AWAITING_CHOICE -> AWAITING_SPIRIT_CONFIRMATION -> FINALIZED
                              \\______________________________/
                               (Civilian / Ghost skip the spirit step)
"""

import copy
import logging
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Protocol, Sequence

logger = logging.getLogger(__name__)

MAX_DRAWS = 10

# Probability that a Sentinel/Guide spirit is a plant rather than an animal
PLANT_SPIRIT_RATE = 0.12

# Gold: 10% of draws land in the rich bracket
RICH_GOLD_RATE = 0.10
RICH_GOLD_RANGE = (8000, 10000)
COMMON_GOLD_RANGE = (100, 7999)


class Role(str, Enum):
    """Character identity."""

    SENTINEL = "Sentinel"
    GUIDE = "Guide"
    CIVILIAN = "Civilian"  # No mental rank, no spirit
    GHOST = "Ghost"  # No physical rank, no spirit


class Rank(str, Enum):
    """Letter-graded power tier for mental or physical capability."""

    NONE = "None"
    D = "D"
    C = "C"
    B = "B"
    A = "A"
    S = "S"
    SS = "SS"
    SSS = "SSS"


class Ability(str, Enum):
    """Ability affinity; one of the eight schools."""

    PHYSICAL = "Physical"
    ELEMENTAL = "Elemental"
    MENTAL = "Mental"
    PERCEPTION = "Perception"
    INFORMATION = "Information"
    HEALING = "Healing"
    ENHANCEMENT = "Enhancement"
    ALCHEMY = "Alchemy"


class SpiritKind(str, Enum):
    ANIMAL = "Animal"
    PLANT = "Plant"
    NONE = "None"
    CUSTOM = "Custom"


SPIRIT_ROLES = frozenset({Role.SENTINEL, Role.GUIDE})


# ============================================================================
# Errors
# ============================================================================


class ExtractorError(Exception):
    """Base class for extractor failures."""


class ValidationError(ExtractorError):
    """User input was rejected; the extractor state is unchanged."""


class SubmissionError(ExtractorError):
    """The persistence collaborator refused or failed to store the sheet."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class InvalidTransitionError(ExtractorError):
    """An action was invoked in a phase that does not accept it."""


class ExtractorLockedError(InvalidTransitionError):
    """The session is finalized and accepts no further actions."""


# ============================================================================
# Weighted choice
# ============================================================================


@dataclass(frozen=True)
class WeightedOption:
    label: str
    weight: float

    def __post_init__(self) -> None:
        if self.weight <= 0:
            raise ValueError(f"Weight for {self.label!r} must be positive, got {self.weight}")


ROLE_WEIGHTS: tuple[WeightedOption, ...] = (
    WeightedOption(Role.SENTINEL.value, 40),
    WeightedOption(Role.GUIDE.value, 40),
    WeightedOption(Role.CIVILIAN.value, 10),
    WeightedOption(Role.GHOST.value, 10),
)

# Shared by mental and physical rolls; S and above total 2%
RANK_WEIGHTS: tuple[WeightedOption, ...] = (
    WeightedOption(Rank.D.value, 24.5),
    WeightedOption(Rank.C.value, 24.5),
    WeightedOption(Rank.B.value, 24.5),
    WeightedOption(Rank.A.value, 24.5),
    WeightedOption(Rank.S.value, 1.2),
    WeightedOption(Rank.SS.value, 0.6),
    WeightedOption(Rank.SSS.value, 0.2),
)

ABILITIES: tuple[Ability, ...] = tuple(Ability)

PLANT_SPIRITS: tuple[str, ...] = (
    "Rose", "Jasmine", "Gardenia", "Lavender", "Sunflower", "Daisy", "Tulip",
    "Cherry Blossom", "Lotus", "Osmanthus", "Morning Glory", "Wisteria", "Ivy",
    "Grapevine", "Trumpet Creeper", "Mint", "Rosemary", "Sage",
    "Lily of the Valley", "Camellia", "Lily", "Iris", "Hydrangea", "Lilac",
    "Night Jasmine", "Climbing Rose", "Hibiscus", "Chinese Peony", "Tree Peony",
    "Honeysuckle",
)

ANIMAL_SPIRITS: tuple[str, ...] = (
    "Wolf", "Gray Wolf", "Arctic Wolf", "Red Fox", "Arctic Fox", "Dhole",
    "Hyena", "Tiger", "Siberian Tiger", "Leopard", "Snow Leopard", "Jaguar",
    "Cheetah", "Lynx", "Pallas's Cat", "Brown Bear", "Black Bear", "Polar Bear",
    "Raccoon", "Badger", "Otter", "Marten", "Weasel", "Wild Boar", "Sika Deer",
    "Elk", "Reindeer", "Antelope", "Alpaca", "Yak", "Bison", "Elephant",
    "African Elephant", "Hippopotamus", "Rhinoceros", "Chimpanzee", "Gorilla",
    "Macaque", "Baboon", "Lemur", "Bald Eagle", "Golden Eagle",
    "Peregrine Falcon", "Goshawk", "Owl", "Snowy Owl", "Crow", "Raven",
    "Magpie", "Swan", "Egret", "Red-crowned Crane", "Flamingo", "Peacock",
    "Hummingbird", "Woodpecker", "Albatross", "Penguin", "Dolphin",
    "Bottlenose Dolphin", "Orca", "Humpback Whale", "Blue Whale",
    "Sperm Whale", "Sea Lion", "Seal", "Walrus", "Great White Shark",
    "Hammerhead Shark", "Manta Ray", "Stingray", "Sailfish", "Tuna",
    "Clownfish", "Seahorse", "Komodo Dragon", "Chameleon", "Green Iguana",
    "Cobra", "Python", "Rattlesnake", "Sea Turtle", "Tortoise", "Crocodile",
    "Alligator", "Tree Frog", "Poison Dart Frog", "Newt", "Fire Salamander",
    "Octopus", "Cuttlefish", "Squid", "Jellyfish", "Starfish", "Sea Urchin",
    "Mantis", "Stick Insect", "Rhinoceros Beetle", "Stag Beetle", "Honeybee",
    "Wasp", "Monarch Butterfly", "Swallowtail", "Dragonfly", "Tarantula",
    "Scorpion", "Crab", "Lobster",
)


def weighted_pick(options: Sequence[WeightedOption], rng: random.Random) -> str:
    """
    Pick a label with probability weight / total.

    Linear scan in listed order: draw r in [0, total) and subtract weights
    until the remainder reaches zero or below. A remainder of exactly zero
    selects the option that caused the crossing.

    Raises:
        ValueError: If options is empty
    """
    if not options:
        raise ValueError("weighted_pick requires at least one option")

    total = sum(option.weight for option in options)
    remainder = rng.random() * total
    for option in options:
        remainder -= option.weight
        if remainder <= 0:
            return option.label

    # Float drift can leave a sliver after the last subtraction
    return options[-1].label


# ============================================================================
# Sheets
# ============================================================================


@dataclass(frozen=True)
class Spirit:
    name: str
    kind: SpiritKind


NO_SPIRIT = Spirit(name="None", kind=SpiritKind.NONE)


@dataclass(frozen=True)
class CandidateSheet:
    """One generated character sheet. Immutable once created."""

    role: Role
    mental_rank: Rank
    physical_rank: Rank
    gold: int
    ability: Ability
    spirit: Spirit

    @property
    def has_spirit(self) -> bool:
        return self.role in SPIRIT_ROLES

    def with_spirit(self, spirit: Spirit) -> "CandidateSheet":
        return replace(self, spirit=spirit)

    def to_payload(self, name: str) -> dict:
        """Wire format expected by the create-character endpoint."""
        return {
            "name": name,
            "role": self.role.value,
            "mentalRank": self.mental_rank.value,
            "physicalRank": self.physical_rank.value,
            "gold": self.gold,
            "ability": self.ability.value,
            "spiritName": self.spirit.name,
            "spiritType": self.spirit.kind.value,
        }


class AttributeGenerator:
    """Draws CandidateSheets from the weighted tables."""

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    def draw(self) -> CandidateSheet:
        rng = self.rng
        role = Role(weighted_pick(ROLE_WEIGHTS, rng))

        # Civilians have no mental rank, ghosts no physical rank
        mental_rank = Rank.NONE if role is Role.CIVILIAN else Rank(weighted_pick(RANK_WEIGHTS, rng))
        physical_rank = Rank.NONE if role is Role.GHOST else Rank(weighted_pick(RANK_WEIGHTS, rng))

        if rng.random() < RICH_GOLD_RATE:
            gold = rng.randint(*RICH_GOLD_RANGE)
        else:
            gold = rng.randint(*COMMON_GOLD_RANGE)

        ability = rng.choice(ABILITIES)

        if role in SPIRIT_ROLES:
            if rng.random() < PLANT_SPIRIT_RATE:
                spirit = Spirit(name=rng.choice(PLANT_SPIRITS), kind=SpiritKind.PLANT)
            else:
                spirit = Spirit(name=rng.choice(ANIMAL_SPIRITS), kind=SpiritKind.ANIMAL)
        else:
            spirit = NO_SPIRIT

        return CandidateSheet(
            role=role,
            mental_rank=mental_rank,
            physical_rank=physical_rank,
            gold=gold,
            ability=ability,
            spirit=spirit,
        )


# ============================================================================
# Selection state machine
# ============================================================================


class ExtractorPhase(Enum):
    DRAWING = "drawing"
    AWAITING_CHOICE = "awaiting_choice"
    AWAITING_SPIRIT_CONFIRMATION = "awaiting_spirit_confirmation"
    FINALIZED = "finalized"


class SpiritPrompt(Enum):
    """Sub-mode of AWAITING_SPIRIT_CONFIRMATION."""

    QUESTION = "question"  # Keep the generated spirit?
    INPUT = "input"  # Waiting for a custom spirit name


class CharacterSubmitter(Protocol):
    async def create_character(self, name: str, sheet: CandidateSheet) -> None:
        """Persist the sheet. Raises SubmissionError on any failure."""
        ...


class AttributeExtractor:
    """
    One player's extraction session.

    Owns the draw history and the working draft. The only I/O is the single
    submission made when the session reaches FINALIZED; if that fails the
    session falls back to AWAITING_CHOICE with history intact.
    """

    def __init__(
        self,
        player_name: str,
        submitter: CharacterSubmitter,
        generator: AttributeGenerator | None = None,
        max_draws: int = MAX_DRAWS,
    ):
        self.player_name = player_name
        self.submitter = submitter
        self.generator = generator or AttributeGenerator()
        self.max_draws = max_draws

        self.phase = ExtractorPhase.DRAWING
        self.spirit_prompt: SpiritPrompt | None = None
        self.draft: CandidateSheet | None = None
        self.final_sheet: CandidateSheet | None = None
        self._history: list[CandidateSheet] = []

    @property
    def history(self) -> tuple[CandidateSheet, ...]:
        return tuple(self._history)

    @property
    def draw_count(self) -> int:
        return len(self._history)

    @property
    def draws_remaining(self) -> int:
        return self.max_draws - len(self._history)

    @property
    def is_locked(self) -> bool:
        return self.phase is ExtractorPhase.FINALIZED

    def _ensure_not_locked(self) -> None:
        if self.phase is ExtractorPhase.FINALIZED:
            raise ExtractorLockedError("Character sheet is already finalized")

    def _require_phase(self, phase: ExtractorPhase, action: str) -> None:
        self._ensure_not_locked()
        if self.phase is not phase:
            raise InvalidTransitionError(
                f"Cannot {action} while {self.phase.value}"
            )

    def draw(self) -> CandidateSheet | None:
        """
        Draw one candidate sheet.

        Once the history is full this appends nothing and (re-)opens the
        choice, discarding any unsubmitted draft. Returns None in that case.
        """
        self._ensure_not_locked()

        if len(self._history) >= self.max_draws:
            self._open_choice()
            return None

        sheet = self.generator.draw()
        self._history.append(sheet)
        logger.debug(
            "Draw %d/%d for %s: %s", len(self._history), self.max_draws, self.player_name, sheet
        )

        if len(self._history) == self.max_draws:
            self._open_choice()
        return sheet

    def _open_choice(self) -> None:
        self.phase = ExtractorPhase.AWAITING_CHOICE
        self.spirit_prompt = None
        self.draft = None

    async def select(self, index: int) -> CandidateSheet:
        """
        Pick history[index] as the character.

        Civilians and ghosts are submitted immediately; sentinels and guides
        move on to the spirit question.
        """
        self._require_phase(ExtractorPhase.AWAITING_CHOICE, "select")
        if not 0 <= index < len(self._history):
            raise IndexError(f"Draw index {index} out of range 0..{len(self._history) - 1}")

        # Copy by value so later edits never touch the history entry
        self.draft = copy.deepcopy(self._history[index])
        logger.info("%s selected draw %d (%s)", self.player_name, index + 1, self.draft.role.value)

        if not self.draft.has_spirit:
            return await self._finalize(self.draft)

        self.phase = ExtractorPhase.AWAITING_SPIRIT_CONFIRMATION
        self.spirit_prompt = SpiritPrompt.QUESTION
        return self.draft

    async def accept_spirit(self) -> CandidateSheet:
        self._require_phase(ExtractorPhase.AWAITING_SPIRIT_CONFIRMATION, "accept spirit")
        return await self._finalize(self.draft)

    def reject_spirit(self) -> None:
        self._require_phase(ExtractorPhase.AWAITING_SPIRIT_CONFIRMATION, "reject spirit")
        self.spirit_prompt = SpiritPrompt.INPUT

    async def confirm_custom_spirit(self, name: str) -> CandidateSheet:
        self._require_phase(ExtractorPhase.AWAITING_SPIRIT_CONFIRMATION, "name a spirit")
        if self.spirit_prompt is not SpiritPrompt.INPUT:
            raise InvalidTransitionError("Reject the current spirit before naming a new one")

        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError("Spirit name cannot be empty")

        self.draft = self.draft.with_spirit(Spirit(name=cleaned, kind=SpiritKind.CUSTOM))
        return await self._finalize(self.draft)

    async def _finalize(self, sheet: CandidateSheet) -> CandidateSheet:
        self.phase = ExtractorPhase.FINALIZED
        self.spirit_prompt = None
        self.final_sheet = sheet

        try:
            await self.submitter.create_character(self.player_name, sheet)
        except SubmissionError as e:
            logger.warning("Submission for %s failed: %s", self.player_name, e.reason)
            self._unlock()
            raise
        except Exception as e:
            # Contract violation by the submitter; unlock and report it
            logger.exception("Submitter raised unexpectedly for %s", self.player_name)
            self._unlock()
            raise SubmissionError(f"Unexpected error: {str(e) or type(e).__name__}") from e

        logger.info("Character sheet for %s finalized", self.player_name)
        return sheet

    def _unlock(self) -> None:
        self.final_sheet = None
        self._open_choice()
