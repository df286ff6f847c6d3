"""
Tour ratings.

Responsibilities:
- Create, read, update and delete the rating a customer gives a tour.
- Aggregate ratings per tour (average score, review count) for ranking.
"""
