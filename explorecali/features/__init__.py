"""
Feature flags.

Responsibilities:
- Read on/off switches for whole API areas from the environment.
- Hide disabled areas behind a 404, as if the routes did not exist.
"""
