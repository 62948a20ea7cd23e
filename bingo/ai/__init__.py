"""AI components: heuristic evaluator and minimax search."""

from .evaluator import HeuristicEvaluator, EvaluatorConfig
from .search import MinimaxSearch, SearchConfig, SearchResult
