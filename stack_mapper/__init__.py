"""
Map a company's software stack and flag consolidation opportunities.
"""

__all__ = ["rule_engine", "costs", "overlap", "suggestions", "formatting", "cli"]
__version__ = "0.1.0"
