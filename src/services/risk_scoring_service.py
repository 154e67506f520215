"""
Customer Risk Scoring Service.

Turns a complaint snapshot into one churn-risk profile per customer.
The run is two passes: per-customer components and raw scores first, then
min-max normalization across the whole population of the run. Output is a
pure function of the snapshot, the supplied signals and the `as_of` instant.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterable, List, Mapping, Optional

from models.complaint import ComplaintRecord, CustomerSignal
from models.risk import RiskProfile, RiskRun, SentimentLabel, TenureBucket
from utils.logging_config import get_logger

logger = get_logger(__name__)

# Business-policy weights. customer_value is an ordinal (1 or 2), so its
# effective contribution can exceed the nominal 10%.
WEIGHTS: Dict[str, float] = {
    "volume_risk": 0.30,
    "severity_risk": 0.30,
    "recency_factor": 0.20,
    "is_new_customer": 0.10,
    "customer_value": 0.10,
    "sentiment": 0.10,
}

RECENCY_DECAY_DAYS = 30.0
NEW_CUSTOMER_WINDOW_DAYS = 30
VOLUME_WINDOW_DAYS = 30
PREMIUM_SEGMENT = "Premium"
DEGENERATE_NORMALIZED_SCORE = 0.0

# Upper bounds (inclusive) checked top-down; the first match wins.
TENURE_BINS = (
    (89, TenureBucket.THREE_MONTHS),
    (180, TenureBucket.THREE_TO_SIX_MONTHS),
    (365, TenureBucket.SIX_TO_TWELVE_MONTHS),
    (730, TenureBucket.ONE_TO_TWO_YEARS),
)


def recency_factor(days_since_last_complaint: int) -> float:
    """Exponential decay of the most recent complaint; 1.0 when it was filed today."""
    return math.exp(-max(days_since_last_complaint, 0) / RECENCY_DECAY_DAYS)


def is_new_customer(signup_date: Optional[date], as_of: date) -> int:
    """1 when the signup falls inside the inclusive 30-day window ending at `as_of`."""
    if signup_date is None:
        return 0
    return 1 if signup_date >= as_of - timedelta(days=NEW_CUSTOMER_WINDOW_DAYS) else 0


def customer_value(segment: Optional[str]) -> int:
    return 2 if segment == PREMIUM_SEGMENT else 1


def complaint_frequency(first: date, last: date, complaint_count: int) -> float:
    """Average spacing in days; 0.0 for a single complaint."""
    if complaint_count <= 0:
        return 0.0
    return (last - first).days / complaint_count


def tenure_bucket(days_since_signup: int) -> TenureBucket:
    for upper, bucket in TENURE_BINS:
        if days_since_signup <= upper:
            return bucket
    return TenureBucket.TWO_PLUS_YEARS


def sentiment_label(sentiment: Optional[float]) -> SentimentLabel:
    """Missing sentiment is treated as negative."""
    if sentiment is None or sentiment < 0:
        return SentimentLabel.NEGATIVE
    if sentiment > 0:
        return SentimentLabel.POSITIVE
    return SentimentLabel.NEUTRAL


def raw_risk_score(components: Mapping[str, Optional[float]]) -> float:
    """Weighted sum; missing components contribute 0."""
    return sum(weight * (components.get(name) or 0.0) for name, weight in WEIGHTS.items())


def normalize_scores(raw_scores: Mapping[str, float]) -> Dict[str, float]:
    """Min-max scale into [0, 1]; every score maps to 0.0 when max == min."""
    if not raw_scores:
        return {}
    low = min(raw_scores.values())
    high = max(raw_scores.values())
    spread = high - low
    if spread == 0:
        return {key: DEGENERATE_NORMALIZED_SCORE for key in raw_scores}
    return {key: min(max((value - low) / spread, 0.0), 1.0) for key, value in raw_scores.items()}


def competition_rank(scores: Mapping[str, float]) -> Dict[str, int]:
    """Rank descending; ties share the rank and leave a gap after them."""
    ordered = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
    ranks: Dict[str, int] = {}
    previous = None
    for position, (key, score) in enumerate(ordered, start=1):
        if score != previous:
            current_rank = position
            previous = score
        ranks[key] = current_rank
    return ranks


@dataclass
class _CustomerHistory:
    """Running aggregate of one customer's complaints."""

    first_complaint: date
    last_complaint: date
    segment: Optional[str]
    signup_date: Optional[date]
    complaint_count: int = 0
    recent_count: int = 0
    sentiment_total: float = 0.0
    sentiment_samples: int = 0

    def add(self, complaint: ComplaintRecord, volume_cutoff: date) -> None:
        self.complaint_count += 1
        self.first_complaint = min(self.first_complaint, complaint.complaint_date)
        self.last_complaint = max(self.last_complaint, complaint.complaint_date)
        if complaint.complaint_date >= volume_cutoff:
            self.recent_count += 1
        if complaint.sentiment_score is not None:
            self.sentiment_total += complaint.sentiment_score
            self.sentiment_samples += 1
        if self.segment is None:
            self.segment = complaint.segment
        if self.signup_date is None:
            self.signup_date = complaint.signup_date

    @property
    def mean_sentiment(self) -> Optional[float]:
        if not self.sentiment_samples:
            return None
        return self.sentiment_total / self.sentiment_samples


class RiskScoringService:
    """Batch engine computing a full replacement set of risk profiles."""

    def score(
        self,
        complaints: Iterable[ComplaintRecord],
        signals: Optional[Iterable[CustomerSignal]] = None,
        as_of: Optional[datetime] = None,
    ) -> RiskRun:
        """Score every customer observed in `complaints` as of `as_of` (default: now, UTC)."""
        start = time.perf_counter()
        as_of = as_of or datetime.now(timezone.utc)
        today = as_of.date()

        histories = self._aggregate(complaints, today)
        signal_map = {signal.customer_id: signal for signal in signals or ()}

        # Pass 1: components and raw scores.
        drafts: Dict[str, dict] = {}
        for customer_id, history in histories.items():
            signal = signal_map.get(customer_id)
            drafts[customer_id] = self._components(customer_id, history, signal, today)

        # Pass 2: population-relative normalization and ranking.
        raw_scores = {cid: draft["raw_risk_score"] for cid, draft in drafts.items()}
        normalized = normalize_scores(raw_scores)
        ranks = competition_rank(raw_scores)

        profiles: List[RiskProfile] = [
            RiskProfile(
                **draft,
                normalized_risk_score=normalized[cid],
                risk_rank=ranks[cid],
            )
            for cid, draft in drafts.items()
        ]
        profiles.sort(key=lambda profile: (profile.risk_rank, profile.customer_id))

        run = RiskRun(
            as_of=as_of,
            customer_count=len(profiles),
            min_raw_score=min(raw_scores.values()) if raw_scores else None,
            max_raw_score=max(raw_scores.values()) if raw_scores else None,
            profiles=profiles,
        )
        logger.info(
            "Risk scores computed",
            extra={
                "customer_count": run.customer_count,
                "as_of": as_of.isoformat(),
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return run

    def _aggregate(
        self, complaints: Iterable[ComplaintRecord], today: date
    ) -> Dict[str, _CustomerHistory]:
        """Single pass grouping complaints by customer."""
        volume_cutoff = today - timedelta(days=VOLUME_WINDOW_DAYS)
        histories: Dict[str, _CustomerHistory] = {}
        skipped = 0
        for complaint in complaints:
            if not complaint.customer_id:
                skipped += 1
                continue
            history = histories.get(complaint.customer_id)
            if history is None:
                history = _CustomerHistory(
                    first_complaint=complaint.complaint_date,
                    last_complaint=complaint.complaint_date,
                    segment=complaint.segment,
                    signup_date=complaint.signup_date,
                )
                histories[complaint.customer_id] = history
            history.add(complaint, volume_cutoff)

        if skipped:
            logger.warning("Complaints without a customer were excluded", extra={"skipped": skipped})
        return histories

    def _components(
        self,
        customer_id: str,
        history: _CustomerHistory,
        signal: Optional[CustomerSignal],
        today: date,
    ) -> dict:
        days_since_last = (today - history.last_complaint).days
        sentiment = history.mean_sentiment
        components = {
            "volume_risk": signal.volume_risk if signal else None,
            "severity_risk": signal.severity_risk if signal else None,
            "recency_factor": recency_factor(days_since_last),
            "is_new_customer": is_new_customer(history.signup_date, today),
            "customer_value": customer_value(history.segment),
            "sentiment": sentiment,
        }
        tenure = None
        if history.signup_date is not None:
            tenure = tenure_bucket((today - history.signup_date).days)

        return {
            "customer_id": customer_id,
            "segment": history.segment,
            "volume_risk": components["volume_risk"] or 0.0,
            "severity_risk": components["severity_risk"] or 0.0,
            "recency_factor": components["recency_factor"],
            "is_new_customer": components["is_new_customer"],
            "customer_value": components["customer_value"],
            "sentiment": sentiment or 0.0,
            "complaint_count": history.complaint_count,
            "complaints_last_30_days": history.recent_count,
            "days_since_last_complaint": days_since_last,
            "frequency": complaint_frequency(
                history.first_complaint, history.last_complaint, history.complaint_count
            ),
            "sentiment_label": sentiment_label(sentiment),
            "tenure_bucket": tenure,
            "raw_risk_score": raw_risk_score(components),
        }
