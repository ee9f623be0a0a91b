"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Build the assistant prompt from the taste profile and recommendations.
- Call Groq to phrase the reply (a clarifying question or the picks).
- Graceful fallback when the LLM is unavailable or fails.
"""
