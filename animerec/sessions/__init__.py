"""
Session persistence.

Responsibilities:
- Create conversation sessions.
- Store the message history of each session.
- Store each session's taste profile in its encoded row form.
"""
