"""
School catalogue.

Responsibilities:
- Define the canonical School schema and its JSONB sub-documents.
- Derive trust tiers from performance signals.
- Query the school store and apply client-side search filters.
- Memoize the unfiltered fetch behind a TTL-bounded cache slot.
"""
