"""
PrepDeck - client-side logic for AI interview question preparation.

Quota gating, generation orchestration and question browsing on top of
the question backend's HTTP API.
"""
