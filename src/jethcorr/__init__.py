"""Public package exports for the jet-hadron correlation framework."""

from .correlator import MODE_JET_HADRON, MODE_LEADING_JET_HADRON, JetHadronCorrelator
from .dijet import Dijet, LeadingPair, classify_regions, find_leading_pair, make_dijet
from .mixing import EventMixer, MixedPair, PoolBinning, VariableBinning
from .models import (
    AnalysisConfig,
    CentralityEstimator,
    Collision,
    CorrelationTuple,
    EventCuts,
    EventInput,
    Jet,
    JetCuts,
    Level,
    McCollision,
    McEventInput,
    MixingConfig,
    MixingFailurePolicy,
    Particle,
    PtHatCuts,
    RegionCuts,
    SplitCollisionMode,
    Track,
    TrackCuts,
)
from .sink import MemorySink, NullSink

__all__ = [
    "JetHadronCorrelator",
    "MODE_JET_HADRON",
    "MODE_LEADING_JET_HADRON",
    "Collision",
    "McCollision",
    "Jet",
    "Track",
    "Particle",
    "EventInput",
    "McEventInput",
    "CorrelationTuple",
    "AnalysisConfig",
    "EventCuts",
    "TrackCuts",
    "JetCuts",
    "PtHatCuts",
    "MixingConfig",
    "RegionCuts",
    "CentralityEstimator",
    "SplitCollisionMode",
    "Level",
    "MixingFailurePolicy",
    "LeadingPair",
    "Dijet",
    "find_leading_pair",
    "make_dijet",
    "classify_regions",
    "EventMixer",
    "MixedPair",
    "PoolBinning",
    "VariableBinning",
    "MemorySink",
    "NullSink",
]
