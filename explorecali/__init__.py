"""
Explore California tour ratings service.

Responsibilities:
- Manage tours and the ratings customers give them.
- Guard reads and writes behind user / admin roles and feature flags.
- Rank tours by their ratings and recommend the best ones to customers.
"""
