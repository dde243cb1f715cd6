from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class GameMode(str, Enum):
    ENGLISH_TO_TRANSLATION = "English-Translation"
    ENGLISH_TO_DEFINITION = "English-Definition"


class CardRole(str, Enum):
    TERM = "term"
    MATCH = "match"


class SessionStatus(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    RESOLVING = "resolving"
    COMPLETE = "complete"


class SubmitStatus(str, Enum):
    IDLE = "Idle"
    PENDING = "Pending"
    DELIVERED = "Delivered"
    FAILED = "Failed"


# --- Catalog ---
class VocabularyEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    term: str
    part_of_speech: str
    meaning_translation: str
    meaning_definition: str


# --- Session ---
class Card(BaseModel):
    model_config = ConfigDict(frozen=True)

    card_id: str
    entry_id: str
    display_text: str
    role: CardRole
    is_right_to_left_script: bool = False


class GameSetup(BaseModel):
    """What the student chose on the start screen."""

    model_config = ConfigDict(frozen=True)

    list_id: str
    mode: GameMode
    difficulty: Difficulty
    student_name: str = ""
    student_class: str = ""


class SessionSummary(BaseModel):
    """Snapshot handed to the result sink once a game is complete.

    Aliases are the field names the spreadsheet endpoint expects.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    student_name: str = Field(alias="studentName")
    student_class: str = Field(alias="studentClass")
    score: int
    elapsed_seconds: int = Field(alias="timer")
    list_id: str = Field(alias="selectedList")
    difficulty: Difficulty
    mode: GameMode


class HintState(BaseModel):
    active_hint_text: Optional[str] = None
    expires_at: Optional[float] = None
    is_fetching: bool = False


# --- API views ---
class CardView(BaseModel):
    position: int
    role: CardRole
    is_face_up: bool
    is_matched: bool
    display_text: Optional[str] = None
    is_right_to_left_script: bool = False


class GameView(BaseModel):
    status: SessionStatus
    score: int
    elapsed_seconds: int
    total_pairs: int
    matched_entry_ids: List[str]
    flipped_positions: List[int]
    pending_resolution: Optional[Tuple[int, int]] = None
    cards: List[CardView]
    submit_status: SubmitStatus
