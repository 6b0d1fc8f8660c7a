"""Leaderboard scoring pipeline: collect, reduce, score, rank."""
