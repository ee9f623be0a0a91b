"""
AniList catalog integration.

Responsibilities:
- Describe AniList media records and search filters.
- Query the AniList GraphQL API for candidate media.
- Look up the genres of a single title to infer taste.
- Cache title lookups in-process.
"""
