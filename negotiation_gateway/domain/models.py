"""Domain models - pure Python dataclasses representing negotiation entities"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class HardshipStatus(str, Enum):
    """Review state of the hardship documentation for one session"""

    UNSET = "unset"
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class NegotiationPhase(str, Enum):
    """Where the conversation currently stands"""

    INITIAL = "initial"
    AWAITING_INCOME = "awaiting_income"
    NEGOTIATING = "negotiating"
    COMPLETED = "completed"


class IncomeTier(str, Enum):
    HIGH = "high"
    MID = "mid"
    LOW = "low"


class TermReason(str, Enum):
    """Why OfferPolicy settled on a term length"""

    REQUESTED = "requested"  # user asked for it and it fits the cap
    CAPPED_NEEDS_DOCUMENTATION = "capped_needs_documentation"
    CAPPED_EXTENDED = "capped_extended"
    INCOME_TIER = "income_tier"
    WIDENED = "widened"
    AT_CAP = "at_cap"  # resisting, but there is no room left under the cap
    HELD = "held"  # nothing new asked, keep the standing offer
    PAY_IN_FULL = "pay_in_full"


@dataclass(frozen=True)
class PolicyConfig:
    """
    Every tunable of the negotiation policy in one place.

    Income thresholds are monthly amounts in cents. The term ladder lists the
    term lengths an offer widens through when the user pushes back.
    """

    high_income_threshold_cents: int = 800_000
    mid_income_threshold_cents: int = 300_000
    ambiguous_income_threshold_cents: int = 250_000
    base_term_cap: int = 12
    extended_term_cap: int = 24
    starting_term_by_tier: Dict[str, int] = field(
        default_factory=lambda: {"high": 3, "mid": 6, "low": 9}
    )
    term_ladder: Tuple[int, ...] = (3, 6, 9, 12, 18, 24, 36)

    def __post_init__(self) -> None:
        if self.base_term_cap < 1:
            raise ValueError("base_term_cap must be at least 1")
        if self.extended_term_cap <= self.base_term_cap:
            raise ValueError("extended_term_cap must exceed base_term_cap")
        if self.high_income_threshold_cents <= self.mid_income_threshold_cents:
            raise ValueError("high income threshold must exceed mid income threshold")
        starts = self.starting_term_by_tier
        # Lower income never starts on a shorter term
        if not (starts["high"] <= starts["mid"] <= starts["low"]):
            raise ValueError("starting terms must not shrink as income drops")


@dataclass(frozen=True)
class InstallmentSchedule:
    """
    Exact repayment schedule: base_count payments of base_amount_cents
    followed by one payment of final_amount_cents.
    """

    total_cents: int
    term_length: int
    base_amount_cents: int
    final_amount_cents: int

    @property
    def base_count(self) -> int:
        return self.term_length - 1

    @property
    def is_even(self) -> bool:
        return self.base_amount_cents == self.final_amount_cents

    def amounts(self) -> List[int]:
        """Every installment in order, in cents"""
        return [self.base_amount_cents] * self.base_count + [self.final_amount_cents]


@dataclass
class IncomeEstimate:
    """Monthly income inferred from what the user said"""

    monthly_cents: int
    source_text: str = ""


@dataclass(frozen=True)
class IncomeReading:
    """
    Result of scanning one message for an income figure.

    amount_cents is the figure as stated (K suffix applied). When ambiguous is
    set the caller must ask whether it was monthly or annual before using it.
    """

    amount_cents: int
    monthly_cents: Optional[int]
    ambiguous: bool
    display: str


@dataclass(frozen=True)
class UserSignals:
    """Keyword-level cues pulled from one user message"""

    affirmative: bool = False
    negative: bool = False
    accepted: bool = False
    resisting: bool = False
    hardship: bool = False
    requested_term: Optional[int] = None
    period_answer: Optional[str] = None  # "monthly" | "annual"


@dataclass(frozen=True)
class OfferContext:
    """Inputs to OfferPolicy for one negotiation turn"""

    hardship_status: HardshipStatus
    income_monthly_cents: Optional[int] = None
    requested_term: Optional[int] = None
    previous_term: Optional[int] = None
    negotiation_turn: int = 0
    resisting: bool = False


@dataclass(frozen=True)
class TermDecision:
    term_length: int
    reason: TermReason
    cap: int
    requested_term: Optional[int] = None

    @property
    def needs_documentation(self) -> bool:
        return self.reason == TermReason.CAPPED_NEEDS_DOCUMENTATION


@dataclass(frozen=True)
class Offer:
    """A term decision backed by its exact schedule and payment link"""

    decision: TermDecision
    schedule: InstallmentSchedule
    payment_link: str

    @property
    def term_length(self) -> int:
        return self.decision.term_length


@dataclass(frozen=True)
class UploadedDocument:
    """Hardship document as received from the chat UI"""

    name: str
    content_type: str
    size: int
    data_url: str = ""


@dataclass(frozen=True)
class ClassificationResult:
    approved: bool
    reason_label: str


@dataclass(frozen=True)
class HardshipReview:
    """Outcome of one document batch passing through the hardship gate"""

    status: HardshipStatus
    reason_label: str
    transitions: Tuple[HardshipStatus, ...] = ()
    classified: bool = True


@dataclass(frozen=True)
class ChatMessage:
    role: str  # "user" | "assistant"
    content: str


@dataclass
class SessionState:
    """Everything one negotiation remembers between turns"""

    session_id: str
    debt_cents: int
    phase: NegotiationPhase = NegotiationPhase.INITIAL
    hardship_status: HardshipStatus = HardshipStatus.UNSET
    income: Optional[IncomeEstimate] = None
    pending_income_cents: Optional[int] = None
    offered_term: Optional[int] = None
    requested_term: Optional[int] = None
    negotiation_turns: int = 0
    documentation_requested: bool = False
    agreed_schedule: Optional[InstallmentSchedule] = None


@dataclass(frozen=True)
class TurnRequest:
    message: str
    conversation_history: List[ChatMessage] = field(default_factory=list)
    uploaded_documents: List[UploadedDocument] = field(default_factory=list)


@dataclass(frozen=True)
class TurnResult:
    response_text: str
    agreement_reached: bool
    hardship_approved: bool
    phase: NegotiationPhase
    used_fallback: bool = False
    fallback_reason: Optional[str] = None  # "timeout" | "failure"
    payment_link: Optional[str] = None
    schedule: Optional[InstallmentSchedule] = None
    corrections: Tuple[str, ...] = ()
    documentation_requested: bool = False
    hardship_review_status: Optional[HardshipStatus] = None  # set when documents were classified this turn
