# signalist/routers/__init__.py
"""
Router modules for API endpoints
"""
