"""Keyword cues from user messages, used to steer offers and the fallback path"""

import re
from dataclasses import dataclass
from typing import Iterator, Optional

from negotiation_gateway.domain.models import UserSignals

_WORD_NUMBERS = {
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
    "eleven": 11,
    "twelve": 12,
    "eighteen": 18,
    "twenty-four": 24,
    "twenty four": 24,
    "thirty-six": 36,
    "thirty six": 36,
}
_NUMBER = r"(\d{1,3}|" + "|".join(re.escape(w) for w in sorted(_WORD_NUMBERS, key=len, reverse=True)) + r")"

_TERM_MONTHS = re.compile(r"(?<![\$\d.,])\b" + _NUMBER + r"\s?-?\s?(?:months?|mos?)\b", re.IGNORECASE)
_TERM_YEARS = re.compile(r"(?<![\$\d.,])\b" + _NUMBER + r"\s?-?\s?years?\b", re.IGNORECASE)

_AFFIRMATIVE = re.compile(r"\b(?:yes|yeah|yep|yup|sure|ok(?:ay)?|i can|absolutely|of course)\b", re.IGNORECASE)
_NEGATIVE = re.compile(
    r"\b(?:no|nope|not really|can'?t|cannot|unable|not able|don'?t have|won'?t)\b", re.IGNORECASE
)
_ACCEPTED = re.compile(
    r"\b(?:works|deal|agree[ds]?|accept(?:ed)?|sounds (?:good|great|fine)|let'?s do|"
    r"that'?s fine|i'?ll take|go with|perfect|good with)\b",
    re.IGNORECASE,
)
_RESISTING = re.compile(
    r"\b(?:too (?:high|much|expensive|steep)|expensive|can'?t afford|cannot afford|"
    r"not afford|lower|less per month|smaller|longer|more time|stretch|not enough)\b",
    re.IGNORECASE,
)
_HARDSHIP = re.compile(
    r"\b(?:laid off|lost (?:my )?job|unemploy(?:ed|ment)|fired|medical|hospital|hardship|disabilit(?:y|ies))\b",
    re.IGNORECASE,
)
_ANNUAL_ANSWER = re.compile(r"\b(?:annual(?:ly)?|yearly|a year|per year|salary)\b", re.IGNORECASE)
_MONTHLY_ANSWER = re.compile(r"\b(?:monthly|a month|per month|each month|month)\b", re.IGNORECASE)

MAX_REQUESTED_TERM = 120


def _number_value(token: str) -> int:
    token = token.lower()
    if token in _WORD_NUMBERS:
        return _WORD_NUMBERS[token]
    return int(token)


def read_requested_term(text: str) -> Optional[int]:
    """First "N months" / "N years" mention, as months"""
    match = _TERM_MONTHS.search(text)
    if match:
        months = _number_value(match.group(1))
    else:
        match = _TERM_YEARS.search(text)
        if not match:
            return None
        months = _number_value(match.group(1)) * 12
    if months < 1 or months > MAX_REQUESTED_TERM:
        return None
    return months


def read_period_answer(text: str) -> Optional[str]:
    annual = bool(_ANNUAL_ANSWER.search(text))
    monthly = bool(_MONTHLY_ANSWER.search(text))
    if annual and not monthly:
        return "annual"
    if monthly and not annual:
        return "monthly"
    return None


def read_signals(text: str) -> UserSignals:
    resisting = bool(_RESISTING.search(text))
    negative = bool(_NEGATIVE.search(text))
    return UserSignals(
        affirmative=bool(_AFFIRMATIVE.search(text)),
        negative=negative,
        accepted=bool(_ACCEPTED.search(text)) and not resisting,
        resisting=resisting,
        hardship=bool(_HARDSHIP.search(text)),
        requested_term=read_requested_term(text),
        period_answer=read_period_answer(text),
    )


@dataclass(frozen=True)
class TermMention:
    """Where a term length appears in prose; number_* spans just the number"""

    start: int
    end: int
    number_start: int
    number_end: int
    months: int
    unit: str  # "month" | "year"


def iter_term_mentions(text: str) -> Iterator[TermMention]:
    mentions = []
    for pattern, unit in ((_TERM_MONTHS, "month"), (_TERM_YEARS, "year")):
        for match in pattern.finditer(text):
            value = _number_value(match.group(1))
            months = value * 12 if unit == "year" else value
            if 1 <= months <= MAX_REQUESTED_TERM:
                mentions.append(
                    TermMention(match.start(), match.end(), match.start(1), match.end(1), months, unit)
                )
    yield from sorted(mentions, key=lambda m: m.start)
