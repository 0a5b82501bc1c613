"""
Fixture synchronization engine for Matchday.
Reconciles the results feed with the local event calendar: fills in scores,
lays out starting lineups, and merges newly announced fixtures.
"""
