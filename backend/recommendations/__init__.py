"""
Wedding package recommender.

Responsibilities:
- Accept three independent budgets plus optional location, guest count and
  preferred studio services.
- Filter the venue, studio and cuisine catalogs to affordable candidates.
- Score and rank candidates using deterministic weighted heuristics.
- Return one package with budget analysis and advisory insights.
"""
