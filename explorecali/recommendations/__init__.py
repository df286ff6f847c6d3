"""
Tour recommendation engine.

Responsibilities:
- Ask the ratings store for per-tour aggregates, best ranked first.
- Leave out tours a customer has already rated when personalising.
- Return a bounded list of recommendations ready for API serialisation.
"""
