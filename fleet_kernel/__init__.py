"""
Fleet Kernel

Trip lifecycle and referential-consistency engine for a small trucking fleet:
- Typed input validation at the boundary
- Reference resolution inside the mutating transaction
- Derived revenue/cost/profit accounting
- Guarded InProgress -> Finished workflow
"""

__version__ = "0.1.0"
