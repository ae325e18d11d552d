"""
Queens Puzzle Vision
====================

Turns a screenshot of a "queens-with-regions" puzzle into a logical board
and solves it.

Architecture:
    1. Line Extraction   – Hough segments → horizontal / vertical candidates
    2. Line Clustering   – merge near-duplicate parallel lines
    3. Grid Validation   – keep intersecting lines, derive N and the cells
    4. Bounds Projection – pad, crop, re-express coordinates in the crop
    5. Region Detection  – per-cell HSV sampling + greedy colour labelling
    6. Queens Solver     – backtracking over rows, columns, regions and
                           king-adjacency
"""

__version__ = "1.0.0"
