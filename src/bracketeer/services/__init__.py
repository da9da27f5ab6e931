"""
Services for Bracketeer.

Transactional entry points that load state through the repositories, run
the pure engine and write the results back:

- bracket_generation: seed and persist a tournament's bracket
- results: report scores, progress entrants, complete tournaments
- match_admin: manual slot placement, start, cancel, reschedule
- bracket_view: grouped bracket display and progress statistics
"""
