# signalist/watchlist/__init__.py
from signalist.watchlist.reconciler import MutationResult, WatchlistReconciler
from signalist.watchlist.optimistic import OptimisticWatchlist

__all__ = ["MutationResult", "WatchlistReconciler", "OptimisticWatchlist"]
