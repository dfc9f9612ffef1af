"""Prometheus metrics for monitoring negotiation outcomes, fallbacks, and model corrections"""

from prometheus_client import Counter, Histogram

# Negotiation metrics
turn_counter = Counter(
    "negotiation_turns_total",
    "Negotiation turns processed",
    ["phase"],  # phase after the turn
)

agreement_counter = Counter(
    "negotiation_agreements_total",
    "Payment plans agreed",
    ["term_bucket"],  # 1, 2-6, 7-12, 13+
)

hardship_review_counter = Counter(
    "hardship_reviews_total",
    "Hardship document batches reviewed",
    ["outcome"],  # approved | rejected
)

# Model collaborator metrics
model_latency_histogram = Histogram(
    "model_latency_seconds",
    "Language model response time",
    buckets=[0.5, 1.0, 2.5, 5.0, 7.5, 10.0, 15.0],
)

model_fallback_counter = Counter(
    "model_fallbacks_total",
    "Turns answered by the deterministic fallback",
    ["reason"],  # timeout | failure
)

reconciler_correction_counter = Counter(
    "reconciler_corrections_total",
    "Corrections applied to model replies",
    ["kind"],  # amount | link | link_removed | capped
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def _term_bucket(term_length: int) -> str:
    if term_length == 1:
        return "1"
    elif term_length <= 6:
        return "2-6"
    elif term_length <= 12:
        return "7-12"
    return "13+"


def record_turn(
    phase: str,
    agreement_term: int | None,
    fallback_reason: str | None,
    corrections: tuple[str, ...],
) -> None:
    """Record per-turn metrics for monitoring agreement rates and model reliability"""
    turn_counter.labels(phase=phase).inc()

    if agreement_term is not None:
        agreement_counter.labels(term_bucket=_term_bucket(agreement_term)).inc()

    if fallback_reason is not None:
        model_fallback_counter.labels(reason=fallback_reason).inc()

    for kind in corrections:
        reconciler_correction_counter.labels(kind=kind).inc()


def record_hardship_review(approved: bool) -> None:
    hardship_review_counter.labels(outcome="approved" if approved else "rejected").inc()
