"""
lotkeeper

Tracks purchase lots of tradable instruments, groups them per ticker into
cost-basis summaries, and lets each lot belong to one or more portfolios.
Keeps a push-synchronized cache of lots, portfolios and ticker metadata
consistent under create/update/delete traffic.
"""

__version__ = "0.1.0"
__author__ = "lotkeeper developers"
