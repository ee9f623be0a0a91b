"""
Conversation layer.

Responsibilities:
- Run one chat turn: extract, merge, infer genres, plan, recommend.
- Decide which clarifying question to ask next.
- Define the chat request/response shapes.
"""
