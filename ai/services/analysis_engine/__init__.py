from .models import Emotion, Entry, TimeRange, CandidateBelief, LinkedBelief, InsightReport, record_key
from .beliefs import BeliefExtractor, ExtractionError, HeuristicBeliefExtractor, ModelBeliefExtractor, FallbackBeliefExtractor, build_belief_extractor
from .insights import build_insight_report
