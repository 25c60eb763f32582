"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Build prompts from match inputs and the candidate school pool.
- Call Groq to rank candidates and write a plain-English debrief.
- Report every failure as a value so the caller can fall back to rule-based ranking.
"""
