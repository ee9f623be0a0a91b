"""
Recommendation engine.

Responsibilities:
- Derive AniList search filters from the taste profile.
- Fetch one page of candidates from the catalog.
- Score and rank candidates with deterministic, additive rules.
- Explain each pick with a short human-readable line.
"""
