"""Candidate scoring, ranking, search and analytics."""
