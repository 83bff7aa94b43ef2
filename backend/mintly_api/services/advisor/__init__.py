from .cache import InMemoryInsightCache, NullInsightCache, build_cache_key
from .contracts import AdvisorInsight, ProviderOutput
from .pipeline import generate_advisor_insight, get_insight_cache, normalize_language
from .providers import InsightProvider, LlmHttpProvider, ManualTemplateProvider, select_provider

__all__ = [
    "AdvisorInsight",
    "InMemoryInsightCache",
    "InsightProvider",
    "LlmHttpProvider",
    "ManualTemplateProvider",
    "NullInsightCache",
    "ProviderOutput",
    "build_cache_key",
    "generate_advisor_insight",
    "get_insight_cache",
    "normalize_language",
    "select_provider",
]
