"""Ranking pipeline: encoder, retriever, constraint filter, scorer, orchestrator."""

from personal_feed.ranker.constraints import ConstraintFilter, apply_constraints_pure
from personal_feed.ranker.encoder import ProfileEncoder, build_profile_text
from personal_feed.ranker.metrics import PipelineMetrics
from personal_feed.ranker.models import (
    DroppedEntry,
    FeedOutcome,
    FeedStatus,
    RankedResult,
    ScoreComponents,
    ScoringMode,
    ScoringOutcome,
    Story,
    UserProfile,
)
from personal_feed.ranker.pipeline import FeedPipeline
from personal_feed.ranker.retriever import CandidateRetriever
from personal_feed.ranker.scorer import RelevanceScorer


__all__ = [
    "CandidateRetriever",
    "ConstraintFilter",
    "DroppedEntry",
    "FeedOutcome",
    "FeedPipeline",
    "FeedStatus",
    "PipelineMetrics",
    "ProfileEncoder",
    "RankedResult",
    "RelevanceScorer",
    "ScoreComponents",
    "ScoringMode",
    "ScoringOutcome",
    "Story",
    "UserProfile",
    "apply_constraints_pure",
    "build_profile_text",
]
