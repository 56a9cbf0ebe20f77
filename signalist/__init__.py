"""Signalist: stock watchlists, market news and email digests."""
