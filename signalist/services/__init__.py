# package marker
# signalist/services/__init__.py
"""
Service modules: Finnhub client and stock search
"""
