"""
Pure bracket engine.

Nothing in this package touches the database:

- builder: seeded entrants -> MatchPlan rows
- progression: completed match -> slot fills and tournament completion
- standings: completed round-robin matches -> sorted table
- prizes: prize pool -> exact decimal payouts
"""
