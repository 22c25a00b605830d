from .catalog import CatalogLoadError, ShadeCatalog, default_catalog
from .matcher import NoMatchError, ShadeMatcher, find_closest_shade
from .models import AnalysisResult, CalibrationOffset, MatchOptions, MatchResult, Shade
from .pipeline import ShadeAnalysisPipeline

__all__ = [
    "AnalysisResult",
    "CalibrationOffset",
    "CatalogLoadError",
    "MatchOptions",
    "MatchResult",
    "NoMatchError",
    "Shade",
    "ShadeAnalysisPipeline",
    "ShadeCatalog",
    "ShadeMatcher",
    "default_catalog",
    "find_closest_shade",
]
