# signalist/news/__init__.py
"""News aggregation pipeline: validate, fetch per symbol, round-robin, fall back.

Import from the submodules directly; ``services.finnhub_client`` depends on
``news.articles`` so this package stays import-free.
"""
