"""
Bracketeer - Bracket Engine for Esports Tournaments

Seeds registered entrants, builds single-elimination, double-elimination
and round-robin brackets, progresses entrants as results are reported and
pays out prize pools when a tournament is decided.

Main components:
- seeding: Seeding strategies (registration order, random, ranked)
- bracket: Positional bracket math
- engine: Pure builder, progression resolver, standings and prize split
- db: SQLAlchemy models, sessions and repositories
- services: Transactional entry points (generation, results, admin, views)
- ledger / notifications: Wallet and notification outbox collaborators
"""

__version__ = "0.1.0"
