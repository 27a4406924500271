"""
Recommendation engine: element compatibility and catalog ranking.

Modules
-------
scorer   : CompatibilityResult + ScoreComponents dataclasses, classify_relation(),
           compatibility(), compute_item_score() — pure functions, no I/O.
ranker   : RankedItem / RankedResult dataclasses + rank() pipeline.
reporter : write_ranking_csv() + write_ranking_json() — file output.
"""
