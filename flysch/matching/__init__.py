"""
School matching engine.

Responsibilities:
- Accept a student's match inputs (budget, goals, location, preferences).
- Reduce the school catalogue to a candidate pool using hard constraints.
- Rank candidates with the Groq LLM, falling back to deterministic scoring.
- Assemble and persist an immutable MatchSession, or explain an empty pool.
"""
