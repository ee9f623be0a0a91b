"""
Taste profile package.

Responsibilities:
- Define the Preferences profile and its sparse per-message update.
- Extract updates from free text with fixed keyword tables.
- Merge updates into the evolving profile.
- Encode/decode the profile for the session store.
"""
