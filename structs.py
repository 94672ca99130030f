from pydantic import BaseModel, Field
from typing import Any, List, Dict, NamedTuple, Optional
import datetime
from enum import Enum

PRACTICE = "practice"

class Verdict(str, Enum):
    SOLVED = "solved"
    NOT_SOLVED = "not-solved"
    PENDING = "pending"
    OTHER = "other"

FAILED_VERDICTS = {
    "FAILED",
    "PARTIAL",
    "COMPILATION_ERROR",
    "RUNTIME_ERROR",
    "WRONG_ANSWER",
    "PRESENTATION_ERROR",
    "TIME_LIMIT_EXCEEDED",
    "MEMORY_LIMIT_EXCEEDED",
    "IDLENESS_LIMIT_EXCEEDED",
    "SECURITY_VIOLATED",
    "CRASHED",
    "INPUT_PREPARATION_CRASHED",
    "CHALLENGED",
}

class ProblemKey(NamedTuple):
    """Identity of a problem: contest id (or the practice sentinel) and index."""
    contest: str
    index: str

    @classmethod
    def of(cls, contest_id: Optional[int], index: str) -> "ProblemKey":
        # missing, null and 0 all mean "no contest"
        if not contest_id:
            return cls(PRACTICE, index)
        return cls(str(contest_id), index)

    def __str__(self) -> str:
        return f"{self.contest}-{self.index}"

class UserProfile(BaseModel):
    handle: str
    rating: Optional[int] = None
    maxRating: Optional[int] = None
    rank: Optional[str] = None
    maxRank: Optional[str] = None
    registrationTimeSeconds: int = 0
    lastOnlineTimeSeconds: Optional[int] = None
    contribution: int = 0
    friendOfCount: int = 0
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    organization: Optional[str] = None
    avatar: Optional[str] = None
    titlePhoto: Optional[str] = None

class RatingChange(BaseModel):
    contestId: int
    contestName: str
    handle: str
    rank: int
    ratingUpdateTimeSeconds: int
    oldRating: int
    newRating: int

    @property
    def delta(self) -> int:
        return self.newRating - self.oldRating

class Problem(BaseModel):
    contestId: Optional[int] = None
    problemsetName: Optional[str] = None
    index: str
    name: str = ""
    type: Optional[str] = None
    points: Optional[float] = None
    rating: Optional[int] = None
    tags: List[str] = Field(default_factory=list)

    @property
    def key(self) -> ProblemKey:
        return ProblemKey.of(self.contestId, self.index)

class Member(BaseModel):
    handle: str
    name: Optional[str] = None

class Party(BaseModel):
    contestId: Optional[int] = None
    members: List[Member] = Field(default_factory=list)
    participantType: Optional[str] = None
    teamId: Optional[int] = None
    teamName: Optional[str] = None
    ghost: bool = False
    room: Optional[int] = None
    startTimeSeconds: Optional[int] = None

class Submission(BaseModel):
    id: int
    contestId: Optional[int] = None
    creationTimeSeconds: int
    relativeTimeSeconds: Optional[int] = None
    problem: Problem
    author: Optional[Party] = None
    programmingLanguage: Optional[str] = None
    verdict: Optional[str] = None
    testset: Optional[str] = None
    passedTestCount: Optional[int] = None
    timeConsumedMillis: Optional[int] = None
    memoryConsumedBytes: Optional[int] = None

    @property
    def outcome(self) -> Verdict:
        if self.verdict == "OK":
            return Verdict.SOLVED
        if self.verdict is None or self.verdict == "TESTING":
            return Verdict.PENDING
        if self.verdict in FAILED_VERDICTS:
            return Verdict.NOT_SOLVED
        return Verdict.OTHER

class Contest(BaseModel):
    id: int
    name: str
    type: str
    phase: str
    frozen: bool = False
    durationSeconds: int
    startTimeSeconds: Optional[int] = None
    relativeTimeSeconds: Optional[int] = None
    preparedBy: Optional[str] = None
    websiteUrl: Optional[str] = None
    description: Optional[str] = None
    difficulty: Optional[int] = None
    kind: Optional[str] = None
    icpcRegion: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    season: Optional[str] = None

# Derived structures, handed to the view layer

class TagStats(BaseModel):
    solved: int = 0
    total: int = 0
    accuracy: float = 0.0

class ProblemStats(BaseModel):
    total: int = 0
    solved: int = 0
    attempted: int = 0
    byDifficulty: Dict[int, int] = Field(default_factory=dict)
    byTag: Dict[str, TagStats] = Field(default_factory=dict)

class HeatmapCell(BaseModel):
    date: datetime.date
    count: int
    level: int

class StreakInfo(BaseModel):
    current: int = 0
    longest: int = 0
    lastActivity: int = 0

class ActivitySummary(BaseModel):
    year: int
    submissions: int
    activeDays: int
    availableYears: List[int]
    streak: StreakInfo

class Dashboard(BaseModel):
    profile: UserProfile
    ratingHistory: List[RatingChange]
    submissions: List[Submission]

# API plumbing

class Envelope(BaseModel):
    status: str
    result: Any = None
    comment: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "OK"

class FetchResult(BaseModel):
    """Outcome of one network call: either an envelope or a transport failure."""
    url: str
    envelope: Optional[Envelope] = None
    transportError: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.envelope is not None and self.envelope.ok

class CacheEntry(BaseModel):
    payload: Any
    fetchedAt: float

class CacheStats(BaseModel):
    size: int
    keys: List[str]
