"""
School seed data.

Responsibilities:
- Combine a list of known flight schools with generated mock schools.
- Fill in programs, fleet and performance signals, and derive each trust tier.
- Emit locations in the mixed encodings the hosted geography column returns.
- Persist the seed dataset as JSON for the in-process school store.
"""
