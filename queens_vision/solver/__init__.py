"""Constrained queens solver."""
from .queens import QueensState, solve_queens, validate_solution
